"""Download a remote video and transcode its audio track to MP3 with ffmpeg."""

from __future__ import annotations

import asyncio
import logging
import time
from pathlib import Path
from uuid import uuid4

import httpx

from ..config import AppConfig
from ..errors import (
    AudioFault,
    DownloadError,
    ExtractionError,
    SpawnError,
    TranscodeProcessError,
    TranscodeTimeoutError,
)

logger = logging.getLogger(__name__)

_STDERR_TAIL = 500


class AudioExtractor:
    """Turns a video URL into an in-memory MP3 buffer.

    The downloaded video only exists on disk for the duration of one call and is
    removed on every exit path.
    """

    def __init__(self, config: AppConfig, client: httpx.AsyncClient) -> None:
        self.config = config
        self._client = client

    def _temp_video_path(self) -> Path:
        return self.config.temp_dir / f"reelscribe-{time.time_ns()}-{uuid4().hex[:12]}.mp4"

    def ffmpeg_args(self, input_path: Path) -> list[str]:
        """Command line that drops video and writes MP3 to stdout."""
        args = [self.config.ffmpeg_binary, "-hide_banner", "-loglevel", "error", "-nostdin", "-i", str(input_path), "-vn"]
        if self.config.audio_channels:
            args += ["-ac", str(self.config.audio_channels)]
        if self.config.audio_sample_rate:
            args += ["-ar", str(self.config.audio_sample_rate)]
        args += ["-f", "mp3", "-acodec", "libmp3lame", "-ab", self.config.audio_bitrate, "pipe:1"]
        return args

    async def extract_audio(self, video_url: str) -> bytes:
        """Return MP3 bytes for ``video_url`` or raise ExtractionError."""
        temp_path = self._temp_video_path()
        started = time.perf_counter()
        try:
            size = await self._download(video_url, temp_path)
            logger.debug("Downloaded %d bytes from %s to %s", size, video_url, temp_path.name)
            audio = await self._transcode(temp_path)
        except AudioFault as exc:
            logger.error("Audio extraction failed for %s: %s: %s", video_url, type(exc).__name__, exc)
            raise ExtractionError(f"{type(exc).__name__}: {exc}") from exc
        except OSError as exc:
            logger.exception("Filesystem error during audio extraction for %s", video_url)
            raise ExtractionError(f"OSError: {exc}") from exc
        finally:
            _discard(temp_path)

        logger.info(
            "Extracted %.1f KB of audio from %s in %.0f ms",
            len(audio) / 1024,
            video_url,
            (time.perf_counter() - started) * 1000,
        )
        return audio

    async def _download(self, video_url: str, destination: Path) -> int:
        written = 0
        try:
            async with self._client.stream("GET", video_url) as response:
                if response.is_error:
                    raise DownloadError(
                        f"Failed to download video: HTTP {response.status_code} {response.reason_phrase}"
                    )
                with destination.open("wb") as handle:
                    async for chunk in response.aiter_bytes():
                        handle.write(chunk)
                        written += len(chunk)
        except (httpx.HTTPError, httpx.InvalidURL) as exc:
            raise DownloadError(f"Failed to download video: {exc}") from exc

        if written == 0:
            raise DownloadError("Failed to download video: empty response body")
        return written

    async def _transcode(self, input_path: Path) -> bytes:
        args = self.ffmpeg_args(input_path)
        timeout = self.config.transcode_timeout_seconds
        try:
            process = await asyncio.create_subprocess_exec(
                *args,
                stdin=asyncio.subprocess.DEVNULL,
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.PIPE,
            )
        except (FileNotFoundError, PermissionError) as exc:
            raise SpawnError(f"Cannot launch {self.config.ffmpeg_binary!r}: {exc}") from exc
        except OSError as exc:
            raise TranscodeProcessError(f"Failed to start ffmpeg process: {exc}") from exc

        try:
            stdout, stderr = await asyncio.wait_for(process.communicate(), timeout=timeout)
        except asyncio.TimeoutError:
            await _reap(process)
            raise TranscodeTimeoutError(f"ffmpeg exceeded {timeout:g}s") from None
        except BaseException:
            # caller cancelled; ffmpeg must not outlive the task
            await _reap(process)
            raise

        if process.returncode != 0:
            tail = (stderr or b"").decode("utf-8", errors="replace").strip()[-_STDERR_TAIL:]
            raise TranscodeProcessError(f"ffmpeg exited with code {process.returncode}: {tail}")
        if not stdout:
            raise TranscodeProcessError("ffmpeg produced no audio output")
        return stdout


async def _reap(process: asyncio.subprocess.Process) -> None:
    if process.returncode is None:
        try:
            process.kill()
        except ProcessLookupError:
            pass
    await process.wait()


def _discard(path: Path) -> None:
    try:
        path.unlink(missing_ok=True)
    except OSError as exc:
        logger.warning("Failed to clean up temporary file %s: %s", path, exc)
