"""Shared async HTTP client construction."""

from __future__ import annotations

import httpx

from ..config import AppConfig

BROWSER_ACCEPT = "text/html,application/xhtml+xml,application/xml;q=0.9,image/webp,*/*;q=0.8"


def build_http_timeout(config: AppConfig) -> httpx.Timeout:
    return httpx.Timeout(
        connect=config.http_connect_timeout,
        read=config.http_read_timeout,
        write=config.http_read_timeout,
        pool=config.http_connect_timeout * 3,
    )


def build_http_client(config: AppConfig) -> httpx.AsyncClient:
    """Create the pooled client shared by every scraper and the audio downloader."""
    return httpx.AsyncClient(
        timeout=build_http_timeout(config),
        follow_redirects=True,
        headers={"User-Agent": config.user_agent},
    )
