"""Speech synthesis: voices, segments, chunk cache, and the synthesis service."""

from .cache import AudioChunkCache
from .segments import SPEAKER_TAG_PATTERN, extract_speaker_segments
from .service import SpeechSynthesisService
from .synthesizer import OpenAITTSSynthesizer, TTSSynthesizer
from .voices import SpeakerVoiceMap

__all__ = [
    "AudioChunkCache",
    "OpenAITTSSynthesizer",
    "SPEAKER_TAG_PATTERN",
    "SpeakerVoiceMap",
    "SpeechSynthesisService",
    "TTSSynthesizer",
    "extract_speaker_segments",
]
