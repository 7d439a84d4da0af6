from __future__ import annotations

import json
import logging
import os
import time
from pathlib import Path
from typing import Callable

from caprep.domain.ports.verified_emails import VerifiedEmailStorePort

logger = logging.getLogger(__name__)


def _now_ms() -> int:
    return int(time.time() * 1000)


class FileVerifiedEmailStore(VerifiedEmailStorePort):
    """
    Verified-email marks kept in memory and mirrored to a flat JSON file
    (``{"email": epoch_ms}``) that is rewritten after every mutation.

    Lookups that miss in memory re-read the file, so a mark written by a
    previous process is still honoured until its retention runs out.
    """

    def __init__(
        self,
        path: str | os.PathLike[str],
        *,
        retention_seconds: float = 2 * 60 * 60,
        clock_ms: Callable[[], int] = _now_ms,
    ) -> None:
        self._path = Path(path)
        self._retention_ms = int(retention_seconds * 1000)
        self._clock_ms = clock_ms
        self._marks: dict[str, int] = {}
        self._load()

    def _read_file(self) -> dict[str, int]:
        data = json.loads(self._path.read_text(encoding="utf-8") or "{}")
        return {str(k): int(v) for k, v in data.items()}

    def _load(self) -> None:
        try:
            if self._path.exists():
                self._marks = self._read_file()
                logger.info("loaded verified emails", extra={"count": len(self._marks)})
            else:
                self._path.parent.mkdir(parents=True, exist_ok=True)
                self._path.write_text("{}", encoding="utf-8")
                logger.info("no verified emails file, starting empty")
        except (OSError, ValueError) as e:
            logger.error("failed to load verified emails", extra={"error": str(e)})

    def _flush(self) -> None:
        try:
            tmp = self._path.with_suffix(self._path.suffix + ".tmp")
            tmp.write_text(json.dumps(self._marks, indent=2), encoding="utf-8")
            os.replace(tmp, self._path)
        except OSError as e:
            logger.error("failed to save verified emails", extra={"error": str(e)})

    def _is_fresh(self, marked_at: int) -> bool:
        return self._clock_ms() - marked_at <= self._retention_ms

    def mark(self, email: str) -> None:
        self._marks[email.strip().lower()] = self._clock_ms()
        self._flush()

    def is_verified(self, email: str) -> bool:
        key = email.strip().lower()
        marked_at = self._marks.get(key)
        if marked_at is None:
            try:
                if self._path.exists():
                    marked_at = self._read_file().get(key)
            except (OSError, ValueError) as e:
                logger.error("failed to read verified emails", extra={"error": str(e)})
            if marked_at is not None:
                self._marks[key] = marked_at
        return marked_at is not None and self._is_fresh(marked_at)

    def remove(self, email: str) -> None:
        self._marks.pop(email.strip().lower(), None)
        self._flush()

    def sweep(self) -> int:
        doomed = [e for e, ts in self._marks.items() if not self._is_fresh(ts)]
        for email in doomed:
            del self._marks[email]
        if doomed:
            self._flush()
        return len(doomed)
