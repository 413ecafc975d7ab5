"""Audio assembly helpers."""

from .merger import AudioMerger

__all__ = ["AudioMerger"]
