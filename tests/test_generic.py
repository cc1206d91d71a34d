"""Catch-all scraper: direct video detection and HTML metadata extraction."""

import asyncio

import httpx
import pytest

from reelscribe.scrapers.generic import DIRECT_VIDEO_CONTENT, GenericScraper, infer_platform, parse_html_page

ARTICLE_HTML = """
<html>
  <head>
    <title>Fallback Title</title>
    <meta property="og:title" content="OG Title">
    <meta name="description" content="Plain description">
    <meta property="og:image" content="/img/cover.jpg">
    <meta name="keywords" content="python, audio ,">
  </head>
  <body>
    <nav>Menu</nav>
    <article>
      <h1>Heading</h1>
      <p>Body text</p>
      <script>var tracking = 1;</script>
    </article>
    <video controls><source src="/media/clip.mp4" type="video/mp4"></video>
  </body>
</html>
"""


class TestParseHtmlPage:
    def test_metadata_and_markdown(self):
        content = parse_html_page("https://example.com/post/1", ARTICLE_HTML)

        assert content.platform == "other"
        assert content.title == "OG Title"
        assert content.caption == "Plain description"
        assert content.thumbnail_url == "https://example.com/img/cover.jpg"
        assert content.video_url == "https://example.com/media/clip.mp4"
        assert content.author == "example.com"
        assert content.hashtags == ("python", "audio")
        assert "# Heading" in content.content
        assert "Body text" in content.content
        assert "Menu" not in content.content
        assert "tracking" not in content.content

    def test_title_falls_back_to_title_tag_then_h1(self):
        with_title = parse_html_page("https://example.com/", "<html><head><title>Tab</title></head><body><h1>H</h1></body></html>")
        assert with_title.title == "Tab"

        h1_only = parse_html_page("https://example.com/", "<html><body><h1>Only Heading</h1></body></html>")
        assert h1_only.title == "Only Heading"

    def test_og_video_and_site_name(self):
        html = """
        <html><head>
          <meta property="og:site_name" content="Example News">
          <meta property="og:video:secure_url" content="https://cdn.example.com/v.mp4">
          <meta name="twitter:description" content="Tweet-sized">
        </head><body><p>x</p></body></html>
        """
        content = parse_html_page("https://news.example.com/a", html)
        assert content.author == "Example News"
        assert content.video_url == "https://cdn.example.com/v.mp4"
        assert content.caption == "Tweet-sized"

    def test_empty_selector_match_falls_through(self):
        html = "<html><body><article>   </article><main><p>Main body</p></main></body></html>"
        content = parse_html_page("https://example.com/", html)
        assert content.content == "Main body"

    def test_body_used_without_content_container(self):
        content = parse_html_page("https://example.com/", "<html><body><p>Loose paragraph</p></body></html>")
        assert content.content == "Loose paragraph"
        assert content.video_url is None


@pytest.mark.parametrize(
    ("url", "platform"),
    [
        ("https://www.tiktok.com/@a/video/1", "tiktok"),
        ("https://twitter.com/a/status/1", "twitter"),
        ("https://x.com/a/status/1", "twitter"),
        ("https://www.linkedin.com/posts/a", "linkedin"),
        ("https://example.com/", "other"),
    ],
)
def test_infer_platform(url, platform):
    assert infer_platform(url) == platform


class TestGenericScraper:
    @pytest.fixture
    def calls(self):
        return []

    def scraper(self, config, mock_http, calls, response):
        def handler(request):
            calls.append(str(request.url))
            if isinstance(response, Exception):
                raise response
            return response

        return GenericScraper(mock_http(handler), config)

    def test_direct_video_extension_skips_fetch(self, config, mock_http, calls):
        scraper = self.scraper(config, mock_http, calls, httpx.Response(500))
        url = "https://cdn.example.com/files/Clip.MP4"
        content = asyncio.run(scraper.scrape(url))

        assert calls == []
        assert content.video_url == url
        assert content.title == "clip.mp4"
        assert content.content == DIRECT_VIDEO_CONTENT

    def test_video_content_type_short_circuits(self, config, mock_http, calls):
        response = httpx.Response(200, headers={"content-type": "video/mp4"}, content=b"\x00" * 64)
        url = "https://cdn.example.com/stream?id=1"
        content = asyncio.run(self.scraper(config, mock_http, calls, response).scrape(url))

        assert content.video_url == url
        assert content.title == "Video File"

    def test_html_page(self, config, mock_http, calls):
        response = httpx.Response(200, html=ARTICLE_HTML)
        content = asyncio.run(self.scraper(config, mock_http, calls, response).scrape("https://example.com/post/1"))

        assert calls == ["https://example.com/post/1"]
        assert content.title == "OG Title"

    def test_http_error_status_returns_none(self, config, mock_http, calls):
        response = httpx.Response(404, html="<p>missing</p>")
        assert asyncio.run(self.scraper(config, mock_http, calls, response).scrape("https://example.com/x")) is None

    def test_network_failure_returns_none(self, config, mock_http, calls):
        scraper = self.scraper(config, mock_http, calls, httpx.ConnectError("refused"))
        assert asyncio.run(scraper.scrape("https://example.com/x")) is None

    def test_url_rejected_by_transport_returns_none(self, config, mock_http, calls):
        scraper = self.scraper(config, mock_http, calls, httpx.InvalidURL("Invalid IDNA hostname"))
        assert asyncio.run(scraper.scrape("https://example.com/x")) is None

    @pytest.mark.parametrize(
        ("url", "accepted"),
        [
            ("https://example.com", True),
            ("http://a.b/c", True),
            ("mailto:a@b.c", False),
            ("/relative", False),
            ("http://exämple..com/x", False),
        ],
    )
    def test_can_handle(self, config, mock_http, calls, url, accepted):
        assert self.scraper(config, mock_http, calls, httpx.Response(200)).can_handle(url) is accepted
