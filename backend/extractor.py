"""Extract raw SEO signals from a parsed document.

No scoring happens here. Every field has a neutral default (0, "", False, [])
when the page lacks the corresponding tag, so scorers never see None.
"""

import copy
import json as _json
import math
import re
from urllib.parse import urlparse

from bs4 import BeautifulSoup

from models import ExtractedSignals, FetchedPage

HEADING_LEVELS = ("h1", "h2", "h3", "h4", "h5", "h6")

# Subtrees that are not page content.
_NON_CONTENT_TAGS = ["script", "style", "nav", "header", "footer", "iframe", "noscript"]

_PERCENT_ESCAPE = re.compile(r"%[0-9A-Fa-f]{2}")
_WORDS_PER_MINUTE = 200


def _attr_text(tag, name: str) -> str:
    if tag is None:
        return ""
    value = tag.get(name)
    if isinstance(value, list):
        value = " ".join(value)
    return (value or "").strip()


def _find_meta(soup: BeautifulSoup, name: str):
    return soup.find("meta", attrs={"name": re.compile(rf"^{re.escape(name)}$", re.I)})


def _rel_values(tag) -> list[str]:
    rel = tag.get("rel") or []
    if isinstance(rel, str):
        rel = rel.split()
    return [r.lower() for r in rel]


def extract_meta(soup: BeautifulSoup) -> dict:
    title_tag = soup.find("title")
    title = title_tag.get_text().strip() if title_tag else ""
    description = _attr_text(_find_meta(soup, "description"), "content")

    charset = _attr_text(soup.find("meta", attrs={"charset": True}), "charset")
    if not charset:
        content_type = soup.find("meta", attrs={"http-equiv": re.compile(r"^content-type$", re.I)})
        charset = _attr_text(content_type, "content")

    return {
        "title": title,
        "title_length": len(title),
        "description": description,
        "description_length": len(description),
        "keywords": _attr_text(_find_meta(soup, "keywords"), "content"),
        "charset": charset,
        "lang": _attr_text(soup.find("html"), "lang"),
    }


def extract_headings(soup: BeautifulSoup) -> dict:
    texts = {
        level: [h.get_text(" ", strip=True) for h in soup.find_all(level)]
        for level in HEADING_LEVELS
    }
    counts = {level: len(items) for level, items in texts.items()}
    return {
        "counts": counts,
        "texts": texts,
        "h1_count": counts["h1"],
        "h2_count": counts["h2"],
        "total": sum(counts.values()),
        "h1_texts": list(texts["h1"]),
    }


def extract_images(soup: BeautifulSoup) -> dict:
    images = soup.find_all("img")
    total = len(images)
    with_alt = sum(1 for img in images if _attr_text(img, "alt"))
    lazy = sum(1 for img in images if _attr_text(img, "loading").lower() == "lazy")
    ratio = round(with_alt / total * 100) if total else 100
    return {
        "total": total,
        "with_alt": with_alt,
        "without_alt": total - with_alt,
        "lazy_loaded": lazy,
        "alt_text_ratio": ratio,
    }


def extract_links(soup: BeautifulSoup, hostname: str) -> dict:
    total = internal = external = nofollow = 0
    for a in soup.find_all("a", href=True):
        href = _attr_text(a, "href")
        if not href or href.lower().startswith("javascript:"):
            continue
        total += 1
        if href.startswith(("/", "#", "./")) or (hostname and hostname in href.lower()):
            internal += 1
        elif href.lower().startswith("http"):
            external += 1
        if "nofollow" in _rel_values(a):
            nofollow += 1
    return {"total": total, "internal": internal, "external": external, "nofollow": nofollow}


def extract_content(soup: BeautifulSoup) -> dict:
    # Work on a copy so the caller's document is left intact.
    root = copy.copy(soup.body or soup)
    for tag in root.find_all(_NON_CONTENT_TAGS):
        # Nested matches are already gone with their ancestor.
        if not tag.decomposed:
            tag.decompose()
    text = root.get_text(separator=" ")
    word_count = len([w for w in text.split() if w])
    return {
        "word_count": word_count,
        "paragraph_count": len(soup.find_all("p")),
        "reading_time_minutes": math.ceil(word_count / _WORDS_PER_MINUTE),
    }


def extract_url_structure(url: str) -> dict:
    parsed = urlparse(url)
    protocol = f"{parsed.scheme.lower()}:" if parsed.scheme else ""
    hostname = (parsed.hostname or "").lower()
    path = parsed.path or "/"
    return {
        "url": url,
        "protocol": protocol,
        "hostname": hostname,
        "path": path,
        "query": parsed.query,
        "length": len(url),
        "is_https": protocol == "https:",
        "has_www": hostname.startswith("www."),
        "has_query": bool(parsed.query),
        "has_uppercase_path": path != path.lower(),
        "has_percent_escapes": bool(_PERCENT_ESCAPE.search(path)),
    }


def extract_mobile(soup: BeautifulSoup) -> dict:
    viewport = _find_meta(soup, "viewport")
    content = _attr_text(viewport, "content").lower().replace(" ", "")
    return {
        "has_viewport_tag": viewport is not None,
        "has_viewport": "width=device-width" in content,
    }


def _structured_data_types(blocks) -> list[str]:
    types: list[str] = []
    for block in blocks:
        try:
            ld = _json.loads(block.string or block.get_text() or "")
        except ValueError:
            continue
        items = ld if isinstance(ld, list) else [ld]
        for item in items:
            if not isinstance(item, dict):
                continue
            sd_type = item.get("@type", "")
            if isinstance(sd_type, list):
                types.extend(str(t) for t in sd_type if t)
            elif sd_type:
                types.append(str(sd_type))
    return list(dict.fromkeys(types))[:10]


def extract_technical(soup: BeautifulSoup) -> dict:
    canonical = None
    amp = None
    hreflang = False
    for link in soup.find_all("link"):
        rel = _rel_values(link)
        if "canonical" in rel and canonical is None:
            canonical = link
        if "amphtml" in rel:
            amp = link
        if "alternate" in rel and link.get("hreflang"):
            hreflang = True

    ld_blocks = soup.find_all(
        "script", attrs={"type": re.compile(r"^\s*application/ld\+json\s*$", re.I)}
    )
    robots = _find_meta(soup, "robots")
    return {
        "has_canonical": canonical is not None,
        "canonical_url": _attr_text(canonical, "href"),
        "has_structured_data": len(ld_blocks) > 0,
        "structured_data_count": len(ld_blocks),
        "structured_data_types": _structured_data_types(ld_blocks),
        "has_robots_meta": robots is not None,
        "is_noindex": "noindex" in _attr_text(robots, "content").lower(),
        "has_hreflang": hreflang,
        "has_amp": amp is not None,
    }


def extract_social(soup: BeautifulSoup) -> dict:
    og = soup.find_all("meta", attrs={"property": re.compile(r"^og:", re.I)})
    twitter = soup.find_all("meta", attrs={"name": re.compile(r"^twitter:", re.I)})
    return {
        "has_open_graph": len(og) > 0,
        "open_graph_count": len(og),
        "has_twitter_card": len(twitter) > 0,
        "twitter_card_count": len(twitter),
    }


def extract_performance(soup: BeautifulSoup, page: FetchedPage | None) -> dict:
    page = page or {}
    stylesheets = [link for link in soup.find_all("link") if "stylesheet" in _rel_values(link)]
    return {
        "page_size_bytes": len((page.get("html") or "").encode("utf-8")),
        "fetch_duration_ms": int(page.get("fetch_duration_ms") or 0),
        "status_code": int(page.get("status_code") or 0),
        "script_count": len(soup.find_all("script", src=True)),
        "stylesheet_count": len(stylesheets),
    }


def extract_security(url_structure: dict, page: FetchedPage | None) -> dict:
    headers = (page or {}).get("headers") or {}
    lowered = {str(k).lower() for k in headers}
    return {
        "is_https": url_structure["is_https"],
        "has_hsts": "strict-transport-security" in lowered,
        "exposes_powered_by": "x-powered-by" in lowered,
    }


def extract_signals(
    soup: BeautifulSoup,
    resolved_url: str,
    page: FetchedPage | None = None,
) -> ExtractedSignals:
    """
    Collect every signal for `soup`, fetched from `resolved_url`.

    `page` supplies response metadata (size, latency, headers); it is carried
    through unmodified. The document itself is not mutated.
    """
    url_structure = extract_url_structure(resolved_url)
    return {
        "meta": extract_meta(soup),
        "headings": extract_headings(soup),
        "images": extract_images(soup),
        "links": extract_links(soup, url_structure["hostname"]),
        "content": extract_content(soup),
        "url_structure": url_structure,
        "mobile": extract_mobile(soup),
        "technical": extract_technical(soup),
        "social": extract_social(soup),
        "performance": extract_performance(soup, page),
        "security": extract_security(url_structure, page),
    }
