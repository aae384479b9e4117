from __future__ import annotations

import hashlib
import json
import logging
import os
import time
from pathlib import Path
from typing import Any, Callable, Optional


def cache_key(prefix: str, **fields: Any) -> str:
    key_data = f"{prefix}:{json.dumps(fields, sort_keys=True, ensure_ascii=False)}"
    return f"{prefix}_{hashlib.md5(key_data.encode('utf-8')).hexdigest()}"


class ResponseCache:
    """Content-addressed on-disk store for provider responses.

    Entries are plain files named after their key; age is taken from the file's
    modification time, so the cache survives restarts and needs no index.
    """

    def __init__(
        self,
        directory: str | Path,
        ttl_seconds: float = 86400.0,
        clock: Callable[[], float] = time.time,
        logger: Optional[logging.Logger] = None,
    ) -> None:
        self.directory = Path(directory)
        self.ttl_seconds = ttl_seconds
        self._clock = clock
        self.log = logger or logging.getLogger(__name__)

    def _path(self, key: str, suffix: str) -> Path:
        return self.directory / f"{key}{suffix}"

    def _expired(self, path: Path) -> bool:
        return self._clock() - path.stat().st_mtime > self.ttl_seconds

    def get(self, key: str, suffix: str = "") -> bytes | None:
        path = self._path(key, suffix)
        try:
            if self._expired(path):
                self.log.info("cache entry expired", extra={"key": key})
                path.unlink(missing_ok=True)
                return None
            data = path.read_bytes()
        except FileNotFoundError:
            return None
        except OSError:
            self.log.warning("cache read failed", extra={"key": key}, exc_info=True)
            return None
        if not data:
            return None
        self.log.info("cache hit", extra={"key": key, "content_length": len(data)})
        return data

    def put(self, key: str, data: bytes, suffix: str = "") -> None:
        path = self._path(key, suffix)
        try:
            self.directory.mkdir(parents=True, exist_ok=True)
            partial = path.with_name(f"{path.name}.{os.getpid()}.part")
            partial.write_bytes(data)
            os.replace(partial, path)
        except OSError:
            self.log.warning("cache write failed", extra={"key": key}, exc_info=True)

    def cleanup(self) -> int:
        """Removes expired entries and returns how many were deleted."""
        if not self.directory.is_dir():
            return 0
        removed = 0
        for path in self.directory.iterdir():
            try:
                if path.is_file() and self._expired(path):
                    path.unlink()
                    removed += 1
            except OSError:
                self.log.warning("cache cleanup failed", extra={"path": str(path)}, exc_info=True)
        if removed:
            self.log.info("cache cleanup completed", extra={"removed": removed})
        return removed
