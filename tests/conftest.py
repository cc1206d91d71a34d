"""Shared fixtures: isolated config, mock HTTP transports, and a fake ffmpeg."""

from __future__ import annotations

import asyncio
import logging
from pathlib import Path
from typing import Callable

import httpx
import pytest

from reelscribe.config import AppConfig

Handler = Callable[[httpx.Request], httpx.Response]


@pytest.fixture
def scratch_dir(tmp_path: Path) -> Path:
    return tmp_path / "scratch"


@pytest.fixture
def make_config(scratch_dir: Path):
    def factory(**overrides) -> AppConfig:
        values = {
            "openai_api_key": "sk-test",
            "temp_dir": scratch_dir,
            "log_path": None,
            "transcode_timeout_seconds": 5.0,
            "transcription_backoff_seconds": 1.0,
            "transcription_language": None,
        }
        values.update(overrides)
        config = AppConfig(_env_file=None, **values)
        config.ensure_runtime_directories()
        return config

    return factory


@pytest.fixture
def config(make_config) -> AppConfig:
    return make_config()


@pytest.fixture
def mock_http():
    def factory(handler: Handler) -> httpx.AsyncClient:
        return httpx.AsyncClient(transport=httpx.MockTransport(handler), follow_redirects=True)

    return factory


class FakeProcess:
    """Stands in for the asyncio subprocess returned by create_subprocess_exec."""

    def __init__(self, stdout: bytes = b"ID3-fake-mp3", stderr: bytes = b"", returncode: int = 0, hang: bool = False):
        self._stdout = stdout
        self._stderr = stderr
        self._final_returncode = returncode
        self._hang = hang
        self.returncode: int | None = None
        self.killed = False

    async def communicate(self):
        if self._hang:
            await asyncio.sleep(3600)
        self.returncode = self._final_returncode
        return self._stdout, self._stderr

    def kill(self) -> None:
        self.killed = True
        self.returncode = -9

    async def wait(self) -> int:
        return self.returncode if self.returncode is not None else 0


class FakeFfmpeg:
    """Records spawn calls and whether the input file existed at spawn time."""

    def __init__(self, process: FakeProcess | None = None, error: Exception | None = None):
        self.process = process or FakeProcess()
        self.error = error
        self.calls: list[tuple[str, ...]] = []
        self.input_existed: list[bool] = []

    async def __call__(self, *args, **kwargs):
        self.calls.append(args)
        if "-i" in args:
            self.input_existed.append(Path(args[args.index("-i") + 1]).exists())
        if self.error is not None:
            raise self.error
        return self.process


@pytest.fixture
def fake_ffmpeg(monkeypatch):
    """Replace process spawning; keyword arguments configure the fake process."""

    def install(*, error: Exception | None = None, **process_options) -> FakeFfmpeg:
        fake = FakeFfmpeg(FakeProcess(**process_options), error)
        monkeypatch.setattr(asyncio, "create_subprocess_exec", fake)
        return fake

    return install


@pytest.fixture
def restore_root_logging():
    root = logging.getLogger()
    handlers, level = list(root.handlers), root.level
    yield root
    for handler in list(root.handlers):
        root.removeHandler(handler)
        if handler not in handlers:
            handler.close()
    for handler in handlers:
        root.addHandler(handler)
    root.setLevel(level)
