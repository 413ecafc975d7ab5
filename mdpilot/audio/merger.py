"""Ordered audio chunk merging.

Responsibilities:
- Join synthesized chunk payloads into one stream in the order given.
- Merge WAV payloads frame-wise after checking parameter compatibility.
"""

from __future__ import annotations

import io
import wave


class AudioMerger:
    """Merge in-memory audio chunk payloads of one container format."""

    def merge(self, parts: list[bytes], audio_format: str) -> bytes:
        """Return the concatenation of `parts`, preserving their order."""

        if audio_format == "mp3":
            return b"".join(parts)
        if audio_format == "wav":
            return self._merge_wav(parts)
        raise ValueError(f"Unsupported audio format `{audio_format}`.")

    def _merge_wav(self, parts: list[bytes]) -> bytes:
        output = io.BytesIO()
        if not parts:
            with wave.open(output, "wb") as merged:
                merged.setnchannels(1)
                merged.setsampwidth(2)
                merged.setframerate(24000)
                merged.writeframes(b"")
            return output.getvalue()

        with wave.open(io.BytesIO(parts[0]), "rb") as first:
            channels = first.getnchannels()
            sample_width = first.getsampwidth()
            framerate = first.getframerate()

        with wave.open(output, "wb") as merged:
            merged.setnchannels(channels)
            merged.setsampwidth(sample_width)
            merged.setframerate(framerate)
            for index, part in enumerate(parts):
                with wave.open(io.BytesIO(part), "rb") as chunk:
                    if (
                        chunk.getnchannels() != channels
                        or chunk.getsampwidth() != sample_width
                        or chunk.getframerate() != framerate
                    ):
                        raise ValueError(f"Incompatible WAV parameters for chunk #{index}.")
                    merged.writeframes(chunk.readframes(chunk.getnframes()))
        return output.getvalue()
