"""Scrape social-media posts and web pages, extract their audio, and transcribe it."""

from __future__ import annotations

from .config import AppConfig, load_config
from .errors import (
    ConfigurationError,
    ContentNotFound,
    ExtractionError,
    NoAudioSource,
    NoScraperFound,
    ReelScribeError,
    TranscriptionError,
)
from .models import TRANSCRIPT_UNAVAILABLE, PipelineResponse, ScrapedContent, TranscriptionResult
from .pipeline import MediaPipeline

__all__ = [
    "AppConfig",
    "ConfigurationError",
    "ContentNotFound",
    "ExtractionError",
    "MediaPipeline",
    "NoAudioSource",
    "NoScraperFound",
    "PipelineResponse",
    "ReelScribeError",
    "ScrapedContent",
    "TRANSCRIPT_UNAVAILABLE",
    "TranscriptionError",
    "TranscriptionResult",
    "load_config",
]
