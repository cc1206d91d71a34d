"""Audio extraction and transcription services."""

from __future__ import annotations

from .audio import AudioExtractor
from .transcription import TranscriptionClient

__all__ = ["AudioExtractor", "TranscriptionClient"]
