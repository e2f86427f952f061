"""Data models and types used across the backend.

Database table definitions are in database.py.
API request/response schemas are in schemas.py.
Types for fetched pages and extracted signals live here.
"""

from typing import TypedDict


class FetchedPage(TypedDict):
    """Raw page returned by the fetcher."""

    url: str
    html: str
    status_code: int
    headers: dict[str, str]
    fetch_duration_ms: int


class MetaSignals(TypedDict):
    title: str
    title_length: int
    description: str
    description_length: int
    keywords: str
    charset: str
    lang: str


class HeadingSignals(TypedDict):
    counts: dict[str, int]
    texts: dict[str, list[str]]
    h1_count: int
    h2_count: int
    total: int
    h1_texts: list[str]


class ImageSignals(TypedDict):
    total: int
    with_alt: int
    without_alt: int
    lazy_loaded: int
    alt_text_ratio: int


class LinkSignals(TypedDict):
    total: int
    internal: int
    external: int
    nofollow: int


class ContentSignals(TypedDict):
    word_count: int
    paragraph_count: int
    reading_time_minutes: int


class UrlSignals(TypedDict):
    url: str
    protocol: str
    hostname: str
    path: str
    query: str
    length: int
    is_https: bool
    has_www: bool
    has_query: bool
    has_uppercase_path: bool
    has_percent_escapes: bool


class MobileSignals(TypedDict):
    has_viewport_tag: bool
    has_viewport: bool


class TechnicalSignals(TypedDict):
    has_canonical: bool
    canonical_url: str
    has_structured_data: bool
    structured_data_count: int
    structured_data_types: list[str]
    has_robots_meta: bool
    is_noindex: bool
    has_hreflang: bool
    has_amp: bool


class SocialSignals(TypedDict):
    has_open_graph: bool
    open_graph_count: int
    has_twitter_card: bool
    twitter_card_count: int


class PerformanceSignals(TypedDict):
    page_size_bytes: int
    fetch_duration_ms: int
    status_code: int
    script_count: int
    stylesheet_count: int


class SecuritySignals(TypedDict):
    is_https: bool
    has_hsts: bool
    exposes_powered_by: bool


class ExtractedSignals(TypedDict):
    """Every raw fact the scorers read; no scores are stored here."""

    meta: MetaSignals
    headings: HeadingSignals
    images: ImageSignals
    links: LinkSignals
    content: ContentSignals
    url_structure: UrlSignals
    mobile: MobileSignals
    technical: TechnicalSignals
    social: SocialSignals
    performance: PerformanceSignals
    security: SecuritySignals
