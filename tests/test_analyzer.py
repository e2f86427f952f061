"""Tests for URL normalization and the end-to-end analysis pipeline."""

from datetime import datetime, timedelta, timezone

import pytest
from conftest import POOR_HTML, FakeFetcher

from analyzer import SEOAnalyzer, cache_key, normalize_url
from cache import AnalysisCache
from errors import FetchTimeoutError, ForbiddenError, InvalidUrlError, ParseError


class TestNormalizeUrl:

    @pytest.mark.parametrize("raw, expected", [
        ("example.com", "https://example.com/"),
        ("  example.com/about  ", "https://example.com/about"),
        ("HTTP://Example.COM/Path?q=1", "http://example.com/Path?q=1"),
        ("https://sub.example.co.uk/a#section", "https://sub.example.co.uk/a"),
        ("http://localhost:8000/", "http://localhost:8000/"),
    ])
    def test_valid(self, raw, expected):
        assert normalize_url(raw) == expected

    @pytest.mark.parametrize("raw", [
        "",
        "   ",
        "not a url and spaces",
        "ftp://example.com/file",
        "https://",
        "justaword",
        "https://exa mple.com/",
        "https://-bad-.com/",
    ])
    def test_invalid(self, raw):
        with pytest.raises(InvalidUrlError):
            normalize_url(raw)

    def test_cache_key_is_lowercased(self):
        assert cache_key("https://example.com/Path") == "https://example.com/path"


class TestAnalyze:

    def test_report_shape(self, fake_fetcher):
        report = SEOAnalyzer(fetcher=fake_fetcher, cache=AnalysisCache()).analyze("example.com")

        assert fake_fetcher.calls == ["https://example.com/"]
        assert report.url == "https://example.com/"
        assert report.domain == "example.com"
        assert report.cached is False
        assert report.overall_score == 80
        assert report.grade == "B+"
        assert set(report.category_scores) == {
            "meta", "headings", "images", "content", "links", "url_structure",
            "mobile", "technical", "social", "security", "performance",
        }
        assert report.signals["meta"]["title"] == "Example Domain"
        assert report.recommendations
        assert report.strengths and report.weaknesses
        assert report.timestamp

    def test_report_is_immutable(self, fake_fetcher):
        report = SEOAnalyzer(fetcher=fake_fetcher, cache=AnalysisCache()).analyze("example.com")
        with pytest.raises(Exception):
            report.overall_score = 1

    def test_invalid_input_never_fetches(self, fake_fetcher):
        analyzer = SEOAnalyzer(fetcher=fake_fetcher, cache=AnalysisCache())
        with pytest.raises(InvalidUrlError):
            analyzer.analyze("not a url and spaces")
        assert fake_fetcher.calls == []

    def test_second_call_is_served_from_cache(self, fake_fetcher):
        analyzer = SEOAnalyzer(fetcher=fake_fetcher, cache=AnalysisCache())
        first = analyzer.analyze("https://example.com/")
        second = analyzer.analyze("EXAMPLE.com")

        assert len(fake_fetcher.calls) == 1
        assert first.cached is False
        assert second.cached is True
        assert first.model_dump(exclude={"cached"}) == second.model_dump(exclude={"cached"})

    def test_expired_entry_is_refetched(self, fake_fetcher, clock):
        analyzer = SEOAnalyzer(fetcher=fake_fetcher, cache=AnalysisCache(ttl_seconds=60, timer=clock))
        analyzer.analyze("example.com")
        clock.advance(30)
        assert analyzer.analyze("example.com").cached is True
        clock.advance(31)
        assert analyzer.analyze("example.com").cached is False
        assert len(fake_fetcher.calls) == 2

    @pytest.mark.parametrize("error", [
        FetchTimeoutError("timed out"),
        ForbiddenError("blocked"),
    ])
    def test_fetch_errors_propagate_and_nothing_is_cached(self, error):
        fetcher = FakeFetcher(error=error)
        cache = AnalysisCache()
        analyzer = SEOAnalyzer(fetcher=fetcher, cache=cache)

        with pytest.raises(type(error)):
            analyzer.analyze("example.com")
        assert len(cache) == 0

    def test_unparseable_page(self):
        analyzer = SEOAnalyzer(fetcher=FakeFetcher(html="plain text, no markup"), cache=AnalysisCache())
        with pytest.raises(ParseError):
            analyzer.analyze("example.com")

    def test_insecure_scenario(self):
        analyzer = SEOAnalyzer(fetcher=FakeFetcher(html=POOR_HTML), cache=AnalysisCache())
        report = analyzer.analyze("http://example.org")

        assert report.category_scores["security"] <= 40
        assert report.category_scores["images"] == 0
        assert sum("HTTPS" in r for r in report.recommendations) == 1

    def test_recommendation_cap_is_configurable(self):
        analyzer = SEOAnalyzer(
            fetcher=FakeFetcher(html=POOR_HTML),
            cache=AnalysisCache(),
            max_recommendations=3,
        )
        assert len(analyzer.analyze("http://example.org").recommendations) == 3


class TestPersistence:

    def test_report_written_to_store(self, fake_fetcher, store):
        analyzer = SEOAnalyzer(fetcher=fake_fetcher, cache=AnalysisCache(), store=store)
        report = analyzer.analyze("example.com")

        rows = store.list_recent()
        assert len(rows) == 1
        assert rows[0]["url"] == report.url
        assert rows[0]["grade"] == report.grade

    def test_store_hit_warms_fresh_cache(self, fake_fetcher, store):
        SEOAnalyzer(fetcher=fake_fetcher, cache=AnalysisCache(), store=store).analyze("example.com")

        cache = AnalysisCache()
        second = SEOAnalyzer(fetcher=fake_fetcher, cache=cache, store=store).analyze("example.com")

        assert second.cached is True
        assert len(fake_fetcher.calls) == 1
        assert len(cache) == 1

    def test_store_failure_does_not_fail_request(self, fake_fetcher, tmp_path):
        from database import SQLiteAnalysisStore

        # Never initialised: reads and writes fail with "no such table".
        broken = SQLiteAnalysisStore(tmp_path / "missing.db")
        cache = AnalysisCache()
        report = SEOAnalyzer(fetcher=fake_fetcher, cache=cache, store=broken).analyze("example.com")

        assert report.cached is False
        assert len(cache) == 1

    def test_store_hit_is_cached_only_for_remaining_lifetime(
        self, fake_fetcher, store, clock, monkeypatch
    ):
        import database

        SEOAnalyzer(fetcher=fake_fetcher, cache=AnalysisCache(), store=store).analyze("example.com")
        saved_at = datetime.now(timezone.utc)
        elapsed = {"seconds": 3540}
        monkeypatch.setattr(database, "_utc_now", lambda: saved_at + timedelta(seconds=elapsed["seconds"]))

        analyzer = SEOAnalyzer(
            fetcher=fake_fetcher, cache=AnalysisCache(ttl_seconds=3600, timer=clock), store=store
        )
        assert analyzer.analyze("example.com").cached is True
        assert len(fake_fetcher.calls) == 1

        # The stored row had about 60 seconds left.
        clock.advance(61)
        elapsed["seconds"] += 61
        report = analyzer.analyze("example.com")

        assert report.cached is False
        assert len(fake_fetcher.calls) == 2
