"""Shared pytest fixtures for the SEO auditor tests."""

import os
import sys
from pathlib import Path

import pytest

# Ensure backend/ is on sys.path so the flat modules are importable.
_backend_dir = str(Path(__file__).resolve().parent.parent / "backend")
if _backend_dir not in sys.path:
    sys.path.insert(0, _backend_dir)

# Keep the API module from touching the real database file.
os.environ.setdefault("PERSIST_ANALYSES", "0")


EXAMPLE_HTML = """<!doctype html>
<html lang="en">
<head>
    <title>Example Domain</title>
    <meta charset="utf-8">
    <meta name="viewport" content="width=device-width, initial-scale=1">
</head>
<body>
<div>
    <h1>Example Domain</h1>
    <p>This domain is for use in illustrative examples in documents. You may use this
    domain in literature without prior coordination or asking for permission.</p>
    <p><a href="https://www.iana.org/domains/example">More information...</a></p>
</div>
</body>
</html>
"""

POOR_HTML = """<html><head></head><body>
<p>Short page.</p>
<img src="/a.png"><img src="/b.png" alt=""><img src="/c.png"><img src="/d.png" alt="  "><img src="/e.png">
</body></html>
"""

RICH_HTML = """<!doctype html>
<html lang="en">
<head>
    <title>Handmade Ceramic Mugs and Bowls | Clay Studio</title>
    <meta name="description" content="Shop handmade ceramic mugs, bowls and plates thrown on the wheel in our studio. Every piece is glazed by hand and fired twice for durability.">
    <meta name="viewport" content="width=device-width, initial-scale=1">
    <meta name="robots" content="index, follow">
    <link rel="canonical" href="https://claystudio.example.com/">
    <meta property="og:title" content="Clay Studio">
    <meta property="og:image" content="https://claystudio.example.com/og.png">
    <meta name="twitter:card" content="summary_large_image">
    <script type="application/ld+json">{"@context": "https://schema.org", "@type": "Store", "name": "Clay Studio"}</script>
</head>
<body>
    <h1>Handmade ceramics</h1>
    <h2>Mugs</h2>
    <h2>Bowls</h2>
    <img src="/mug.jpg" alt="Blue speckled mug">
    <img src="/bowl.jpg" alt="Stoneware bowl" loading="lazy">
    {paragraphs}
    {links}
    <a href="https://www.instagram.com/claystudio">Instagram</a>
    <a href="https://www.etsy.com/shop/claystudio">Etsy</a>
    <a href="https://www.pinterest.com/claystudio">Pinterest</a>
</body>
</html>
""".replace(
    "{paragraphs}",
    "\n".join(
        "<p>" + " ".join(["clay"] * 200) + "</p>" for _ in range(6)
    ),
).replace(
    "{links}",
    "\n".join(f'<a href="/collections/{i}">Collection {i}</a>' for i in range(12)),
)


def make_page(html: str, url: str = "https://example.com/", duration_ms: int = 120) -> dict:
    return {
        "url": url,
        "html": html,
        "status_code": 200,
        "headers": {"content-type": "text/html; charset=utf-8"},
        "fetch_duration_ms": duration_ms,
    }


class FakeFetcher:
    """Fetcher stand-in that serves canned HTML and records every call."""

    def __init__(self, html: str = EXAMPLE_HTML, error: Exception | None = None) -> None:
        self.html = html
        self.error = error
        self.calls: list[str] = []

    def __call__(self, url: str, **kwargs) -> dict:
        self.calls.append(url)
        if self.error is not None:
            raise self.error
        return make_page(self.html, url=url)


class FakeClock:
    """Manually advanced timer for TTL tests."""

    def __init__(self, start: float = 1000.0) -> None:
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


@pytest.fixture()
def fake_fetcher():
    return FakeFetcher()


@pytest.fixture()
def clock():
    return FakeClock()


@pytest.fixture()
def store(tmp_path):
    """Provide an initialised SQLite store in a temp directory."""
    from database import SQLiteAnalysisStore

    db = SQLiteAnalysisStore(tmp_path / "analyses.db")
    db.init()
    return db


@pytest.fixture()
def parse():
    from scraper import parse_html

    return parse_html
