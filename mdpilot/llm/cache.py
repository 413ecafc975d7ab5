"""Completion caching for instruction interpretation.

Responsibilities:
- Keep successful completions in a bounded LRU store with a fixed time-to-live.
- Key entries on a digest of the full request payload.
- Require a provider credential before any lookup or external call.
"""

from __future__ import annotations

import asyncio
from collections import OrderedDict
from dataclasses import dataclass, field
from hashlib import sha256
import json
import time
from typing import Any, Callable

from ..telemetry.logger import RunLogger
from .openai_client import OpenAIChatClient

SYSTEM_PROMPT = (
    "You are a helpful assistant for restructuring and restyling markdown documents."
)


@dataclass(slots=True)
class ResponseCache:
    """In-memory LRU cache with per-entry expiry.

    Attributes:
        capacity: Maximum number of live entries; least-recently-used are evicted first.
        ttl_seconds: Entry lifetime measured with `clock`.
        clock: Monotonic time source, injectable for tests.
        hits: Lookup hits since construction.
        misses: Lookup misses (including expired entries) since construction.
    """

    capacity: int = 256
    ttl_seconds: float = 3600.0
    clock: Callable[[], float] = time.monotonic
    hits: int = 0
    misses: int = 0
    _entries: OrderedDict[str, tuple[float, str]] = field(default_factory=OrderedDict)

    @staticmethod
    def make_key(payload: Any) -> str:
        """Return a sha256 digest of a canonical JSON rendering of `payload`."""

        canonical = json.dumps(payload, sort_keys=True, ensure_ascii=True, separators=(",", ":"))
        return sha256(canonical.encode("utf-8")).hexdigest()

    def get(self, key: str) -> str | None:
        """Return a live entry and mark it recently used, or `None`."""

        entry = self._entries.get(key)
        if entry is None:
            self.misses += 1
            return None
        expires_at, value = entry
        if self.clock() >= expires_at:
            self._entries.pop(key, None)
            self.misses += 1
            return None
        self._entries.move_to_end(key)
        self.hits += 1
        return value

    def has(self, key: str) -> bool:
        """Return whether a live entry exists without touching counters or recency."""

        entry = self._entries.get(key)
        return entry is not None and self.clock() < entry[0]

    def set(self, key: str, value: str) -> None:
        """Store a value, replacing any previous entry, and evict beyond capacity."""

        self._entries[key] = (self.clock() + self.ttl_seconds, value)
        self._entries.move_to_end(key)
        while len(self._entries) > self.capacity:
            self._entries.popitem(last=False)

    def __len__(self) -> int:
        return len(self._entries)


class CompletionCache:
    """Serve interpretation requests from cache, calling the chat client on misses."""

    def __init__(
        self,
        *,
        client: OpenAIChatClient,
        cache: ResponseCache,
        model: str,
        temperature: float = 0.0,
        max_tokens: int | None = None,
        system_prompt: str = SYSTEM_PROMPT,
        run_logger: RunLogger | None = None,
    ) -> None:
        """Bind the cache to a client and request settings."""

        self.client = client
        self.cache = cache
        self.model = model
        self.temperature = temperature
        self.max_tokens = max_tokens
        self.system_prompt = system_prompt
        self.run_logger = run_logger or RunLogger()

    def messages_for(self, prompt: str) -> list[dict[str, str]]:
        """Return the role-tagged message list for one prompt."""

        return [
            {"role": "system", "content": self.system_prompt},
            {"role": "user", "content": prompt},
        ]

    async def get_or_compute(self, prompt: str, request_id: str) -> str:
        """Return the completion for `prompt`, computing it at most once per TTL window."""

        self.client.require_api_key()
        run_logger = self.run_logger.bind(request_id)
        messages = self.messages_for(prompt)
        key = ResponseCache.make_key(
            {"model": self.model, "temperature": self.temperature, "messages": messages}
        )
        cached = self.cache.get(key)
        if cached is not None:
            run_logger.info("completion-cache", "hit", key=key[:12])
            return cached

        run_logger.info("completion-cache", "miss", key=key[:12], model=self.model)
        text = await asyncio.to_thread(
            self.client.chat_completion_text,
            model=self.model,
            messages=messages,
            temperature=self.temperature,
            max_tokens=self.max_tokens,
        )
        self.cache.set(key, text)
        return text
