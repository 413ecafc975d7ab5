"""Content-addressable on-disk cache for synthesized audio chunks.

Responsibilities:
- Key chunks on a digest of voice, model, format, and text.
- Expire entries by modification time and prune the oldest beyond capacity.
- Write through a temporary file and an atomic rename so readers never see partial data.
"""

from __future__ import annotations

from hashlib import sha256
import json
import os
from pathlib import Path
import tempfile
import time
from typing import Callable

from ..telemetry.logger import RunLogger


class AudioChunkCache:
    """Directory-backed cache of synthesized chunk payloads."""

    def __init__(
        self,
        root: Path,
        *,
        ttl_seconds: float = 7 * 24 * 3600,
        capacity: int = 2048,
        clock: Callable[[], float] = time.time,
        run_logger: RunLogger | None = None,
    ) -> None:
        """Initialize the cache rooted at `root`; the directory is created lazily."""

        self.root = root
        self.ttl_seconds = ttl_seconds
        self.capacity = capacity
        self.clock = clock
        self.run_logger = run_logger or RunLogger()

    @staticmethod
    def make_key(*, voice: str, model: str, audio_format: str, text: str) -> str:
        """Return the content digest for one chunk request."""

        identity = json.dumps(
            {"format": audio_format, "model": model, "text": text, "voice": voice},
            sort_keys=True,
            ensure_ascii=False,
            separators=(",", ":"),
        )
        return sha256(identity.encode("utf-8")).hexdigest()

    def path_for(self, key: str, audio_format: str) -> Path:
        """Return the cache file path for a key."""

        return self.root / f"{key}.{audio_format}"

    def get(self, key: str, audio_format: str) -> bytes | None:
        """Return cached bytes, or `None` on miss, expiry, or unreadable entries."""

        path = self.path_for(key, audio_format)
        try:
            stat = path.stat()
            if self.clock() - stat.st_mtime > self.ttl_seconds:
                path.unlink(missing_ok=True)
                return None
            payload = path.read_bytes()
        except FileNotFoundError:
            return None
        except OSError as exc:
            self.run_logger.warning("tts-cache", "read_failed", error_type=type(exc).__name__)
            return None
        if not payload:
            self.run_logger.warning("tts-cache", "empty_entry", key=key[:12])
            return None
        return payload

    def set(self, key: str, audio_format: str, payload: bytes) -> Path:
        """Persist bytes atomically and prune the cache to capacity."""

        self.root.mkdir(parents=True, exist_ok=True)
        target = self.path_for(key, audio_format)
        descriptor, temp_name = tempfile.mkstemp(dir=self.root, prefix=".chunk-", suffix=".tmp")
        try:
            with os.fdopen(descriptor, "wb") as handle:
                handle.write(payload)
            os.replace(temp_name, target)
        except BaseException:
            Path(temp_name).unlink(missing_ok=True)
            raise
        self.prune()
        return target

    def prune(self) -> int:
        """Delete expired entries and the oldest entries beyond capacity."""

        if not self.root.is_dir():
            return 0
        now = self.clock()
        entries: list[tuple[float, Path]] = []
        removed = 0
        for path in self.root.iterdir():
            if not path.is_file() or path.name.startswith("."):
                continue
            try:
                mtime = path.stat().st_mtime
            except FileNotFoundError:
                continue
            if now - mtime > self.ttl_seconds:
                path.unlink(missing_ok=True)
                removed += 1
            else:
                entries.append((mtime, path))
        entries.sort()
        for _, path in entries[: max(0, len(entries) - self.capacity)]:
            path.unlink(missing_ok=True)
            removed += 1
        return removed
