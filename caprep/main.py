from contextlib import asynccontextmanager

from fastapi import FastAPI

from caprep.container import AppState, build_state
from caprep.infrastructure.db.pool import close_pool, get_pool
from caprep.infrastructure.email.sendgrid_adapter import SendGridEmailAdapter
from caprep.infrastructure.http.client import (
    close_http_client,
    get_http_client,
    open_http_client,
)
from caprep.logging import setup_logging
from caprep.presentation.api import api
from caprep.presentation.errors import register_exception_handlers
from caprep.presentation.rate_limits import install_rate_limits
from caprep.presentation.routes.health import router as health_router
from caprep.settings import Settings, get_settings


@asynccontextmanager
async def lifespan(app: FastAPI):
    settings: Settings = app.state.settings
    state: AppState = app.state.caprep

    # startup
    pool = get_pool()
    if not getattr(pool, "is_open", False):
        await pool.open()

    await open_http_client(timeout=settings.email_timeout_seconds)

    # ONE shared email adapter on top of the shared HTTP client
    email_adapter = SendGridEmailAdapter(
        api_key=settings.sendgrid_api_key,
        from_email=settings.sendgrid_from_email,
        base_url=settings.sendgrid_base_url,
        client=get_http_client(),
        timeout=settings.email_timeout_seconds,
    )
    app.state.email_adapter = email_adapter  # expose to dependencies

    state.sweeper.start()
    try:
        yield
    finally:
        # shutdown
        await state.sweeper.stop()
        await email_adapter.aclose()  # it won't close the shared client
        await close_http_client()
        await close_pool()


def create_app(settings: Settings | None = None, state: AppState | None = None) -> FastAPI:
    settings = settings or get_settings()
    setup_logging(settings.log_level)
    app = FastAPI(title="CAprep API", version="0.1.0", lifespan=lifespan)
    app.state.settings = settings
    app.state.caprep = state or build_state(settings)
    register_exception_handlers(app)
    install_rate_limits(app, settings)
    app.include_router(health_router)
    app.include_router(api)
    return app


app = create_app()
