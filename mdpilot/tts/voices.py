"""Speaker to voice resolution.

Responsibilities:
- Validate the `speaker_map` front-matter shape.
- Resolve speaker names to synthesis voices case-insensitively, with no fallback voice.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

from ..errors import SpeakerResolutionError


@dataclass(frozen=True, slots=True)
class SpeakerVoiceMap:
    """Case-insensitive mapping from speaker names to provider voices.

    Attributes:
        voices: Voice identifiers keyed by case-folded speaker name.
    """

    voices: dict[str, str] = field(default_factory=dict)

    @classmethod
    def from_config(cls, raw: Any) -> SpeakerVoiceMap:
        """Build a map from a list of `{Speaker, TTS_Voice}` entries."""

        if not isinstance(raw, list):
            raise SpeakerResolutionError("`speaker_map` must be a list of {Speaker, TTS_Voice}.")
        voices: dict[str, str] = {}
        for index, entry in enumerate(raw):
            if not isinstance(entry, dict):
                raise SpeakerResolutionError(f"`speaker_map` entry #{index} must be a mapping.")
            speaker = entry.get("Speaker")
            voice = entry.get("TTS_Voice")
            if not isinstance(speaker, str) or not speaker.strip():
                raise SpeakerResolutionError(f"`speaker_map` entry #{index} needs `Speaker`.")
            if not isinstance(voice, str) or not voice.strip():
                raise SpeakerResolutionError(f"`speaker_map` entry #{index} needs `TTS_Voice`.")
            voices[speaker.strip().casefold()] = voice.strip()
        return cls(voices=voices)

    def voice_for(self, speaker: str) -> str:
        """Return the voice for a speaker or raise `SpeakerResolutionError`."""

        voice = self.voices.get(speaker.strip().casefold())
        if voice is None:
            raise SpeakerResolutionError(f"No voice configured for speaker `{speaker}`.")
        return voice

    def __bool__(self) -> bool:
        return bool(self.voices)
