"""Analysis pipeline: normalize -> cache -> fetch -> extract -> score -> recommend.

The fetcher, parser, cache and store are injected so the pipeline can be run
without network or disk.
"""

import logging
import re
import sqlite3
from datetime import datetime, timezone
from urllib.parse import urlparse, urlunparse

from cache import AnalysisCache
from errors import InvalidUrlError
from extractor import extract_signals
from recommendations import recommend
from schemas import AnalysisReport
from scoring import aggregate, score_categories
from scraper import fetch_page, parse_html
from settings import MAX_RECOMMENDATIONS

logger = logging.getLogger(__name__)

_SCHEME = re.compile(r"^[a-zA-Z][a-zA-Z0-9+.\-]*://")
_HOST_LABEL = re.compile(r"^(?!-)[a-z0-9-]{1,63}(?<!-)$")
_IPV4 = re.compile(r"^\d{1,3}(\.\d{1,3}){3}$")


def _valid_hostname(hostname: str) -> bool:
    if hostname == "localhost" or _IPV4.match(hostname):
        return True
    labels = hostname.rstrip(".").split(".")
    if len(labels) < 2:
        return False
    return all(_HOST_LABEL.match(label) for label in labels)


def normalize_url(raw_input: str) -> str:
    """
    Trim, add https:// when no scheme is given, and validate.

    Raises InvalidUrlError for anything that is not a well-formed http(s) URL.
    """
    text = str(raw_input or "").strip()
    if not text:
        raise InvalidUrlError("Please provide a URL, e.g. https://example.com")
    if not _SCHEME.match(text):
        text = "https://" + text

    try:
        parsed = urlparse(text)
        hostname = (parsed.hostname or "").lower()
        port = parsed.port
    except ValueError as exc:
        raise InvalidUrlError(f"'{raw_input}' is not a valid URL.") from exc

    if parsed.scheme.lower() not in ("http", "https"):
        raise InvalidUrlError(f"Only http and https URLs can be analyzed, got '{parsed.scheme}'.")
    if not hostname or not _valid_hostname(hostname) or re.search(r"\s", text):
        raise InvalidUrlError(f"'{raw_input}' is not a valid URL.")

    netloc = hostname if port is None else f"{hostname}:{port}"
    return urlunparse(
        (parsed.scheme.lower(), netloc, parsed.path or "/", parsed.params, parsed.query, "")
    )


def cache_key(normalized_url: str) -> str:
    return normalized_url.lower()


class SEOAnalyzer:
    """Single entry point for analyzing one URL."""

    def __init__(
        self,
        fetcher=fetch_page,
        parser=parse_html,
        cache: AnalysisCache | None = None,
        store=None,
        max_recommendations: int = MAX_RECOMMENDATIONS,
    ) -> None:
        self.fetcher = fetcher
        self.parser = parser
        self.cache = cache if cache is not None else AnalysisCache()
        self.store = store
        self.max_recommendations = max_recommendations

    def _lookup(self, key: str) -> AnalysisReport | None:
        report = self.cache.get(key)
        if report is not None:
            logger.info("Serving %s from memory cache", key)
            return report
        if self.store is None:
            return None
        try:
            found = self.store.load_recent(key, self.cache.ttl_seconds)
        except sqlite3.Error:
            logger.exception("Could not read stored analysis for %s", key)
            return None
        if found is None:
            return None
        report, age_seconds = found
        logger.info("Serving %s from database cache (age %.0fs)", key, age_seconds)
        # Only for what is left of the row's lifetime.
        self.cache.set(key, report, ttl_seconds=self.cache.ttl_seconds - age_seconds)
        return report

    def _persist(self, key: str, report: AnalysisReport) -> None:
        self.cache.set(key, report)
        if self.store is None:
            return
        try:
            self.store.save_report(key, report)
        except sqlite3.Error:
            logger.exception("Could not persist analysis for %s", key)

    def build_report(self, url: str, page, document) -> AnalysisReport:
        """Run extraction, scoring and recommendations on an already-parsed page."""
        signals = extract_signals(document, page["url"] or url, page)
        category_scores = score_categories(signals)
        summary = aggregate(category_scores)
        return AnalysisReport(
            url=url,
            domain=urlparse(url).hostname or "",
            signals=signals,
            category_scores=category_scores,
            overall_score=summary["overall"],
            grade=summary["grade"],
            strengths=summary["strengths"],
            weaknesses=summary["weaknesses"],
            recommendations=recommend(signals, category_scores, limit=self.max_recommendations),
            cached=False,
            timestamp=datetime.now(timezone.utc).isoformat(),
        )

    def analyze(self, raw_input: str) -> AnalysisReport:
        """
        Analyze the page behind `raw_input`.

        Raises InvalidUrlError before any fetch, and lets FetchError /
        ParseError from the collaborators propagate unchanged.
        """
        url = normalize_url(raw_input)
        key = cache_key(url)

        cached = self._lookup(key)
        if cached is not None:
            return cached.model_copy(update={"cached": True})

        logger.info("Fetching %s", url)
        page = self.fetcher(url)
        document = self.parser(page["html"])
        report = self.build_report(url, page, document)

        self._persist(key, report)
        logger.info(
            "Analysis completed url=%s score=%d grade=%s",
            url,
            report.overall_score,
            report.grade,
        )
        return report
