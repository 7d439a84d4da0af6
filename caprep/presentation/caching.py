from __future__ import annotations

import logging
from typing import Any, Callable, Coroutine, TypeVar

from fastapi import Request, Response
from fastapi.routing import APIRoute
from starlette.background import BackgroundTask, BackgroundTasks

from caprep.domain.ports.response_cache import GUEST, ResponseCachePort
from caprep.infrastructure.security.tokens import TokenError, TokenService

logger = logging.getLogger(__name__)

CACHE_TTL_ATTR = "__cache_ttl_seconds__"
SKIP_CACHE_HEADER = "x-skip-cache"
CACHE_STATUS_HEADER = "x-cache"

F = TypeVar("F", bound=Callable[..., Any])


def cached(ttl_seconds: int) -> Callable[[F], F]:
    """Mark a GET endpoint as cacheable; ``CachingRoute`` does the rest."""

    def decorator(endpoint: F) -> F:
        setattr(endpoint, CACHE_TTL_ATTR, ttl_seconds)
        return endpoint

    return decorator


def request_url(request: Request) -> str:
    """Path plus raw query string, exactly as the client sent it."""
    url = request.url.path
    if request.url.query:
        url = f"{url}?{request.url.query}"
    return url


def resolve_identity(request: Request, tokens: TokenService) -> str:
    auth = request.headers.get("authorization", "")
    scheme, _, credentials = auth.partition(" ")
    if scheme.lower() != "bearer" or not credentials.strip():
        return GUEST
    try:
        claims = tokens.decode_access(credentials.strip())
    except TokenError:
        return GUEST
    return str(claims["id"])


def _store_quietly(
    cache: ResponseCachePort,
    identity: str,
    url: str,
    *,
    body: bytes,
    media_type: str | None,
    status_code: int,
    ttl_seconds: int,
) -> None:
    try:
        cache.store(
            identity,
            url,
            body=body,
            media_type=media_type,
            status_code=status_code,
            ttl_seconds=ttl_seconds,
        )
    except Exception:
        logger.exception("cache store failed", extra={"url": url})


def _append_background(response: Response, task: BackgroundTask) -> None:
    existing = response.background
    if existing is None:
        response.background = task
    elif isinstance(existing, BackgroundTasks):
        existing.tasks.append(task)
    else:
        response.background = BackgroundTasks(tasks=[existing, task])


class CachingRoute(APIRoute):
    """
    Route class serving ``@cached`` GET endpoints from the response cache.

    Hits are replayed with ``x-cache: HIT``. Misses run the endpoint and
    store successful bodies after the response has been sent, so a slow
    or broken cache never delays the client.
    """

    def get_route_handler(self) -> Callable[[Request], Coroutine[Any, Any, Response]]:
        handler = super().get_route_handler()
        ttl_seconds = getattr(self.endpoint, CACHE_TTL_ATTR, None)
        if ttl_seconds is None or "GET" not in self.methods:
            return handler

        async def caching_handler(request: Request) -> Response:
            if request.method != "GET":
                return await handler(request)
            if request.headers.get(SKIP_CACHE_HEADER, "").strip().lower() == "true":
                return await handler(request)

            state = request.app.state.caprep
            cache: ResponseCachePort = state.response_cache
            identity = resolve_identity(request, state.tokens)
            url = request_url(request)

            try:
                entry = cache.lookup(identity, url)
            except Exception:
                logger.exception("cache lookup failed", extra={"url": url})
                entry = None
            if entry is not None:
                return Response(
                    content=entry.body,
                    status_code=entry.status_code,
                    media_type=entry.media_type,
                    headers={CACHE_STATUS_HEADER: "HIT"},
                )

            response = await handler(request)
            body = getattr(response, "body", None)
            if 200 <= response.status_code < 300 and isinstance(body, bytes):
                response.headers[CACHE_STATUS_HEADER] = "MISS"
                _append_background(
                    response,
                    BackgroundTask(
                        _store_quietly,
                        cache,
                        identity,
                        url,
                        body=body,
                        media_type=response.media_type,
                        status_code=response.status_code,
                        ttl_seconds=ttl_seconds,
                    ),
                )
            return response

        return caching_handler
