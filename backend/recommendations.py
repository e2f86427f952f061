"""Turn signals and category scores into a short, ordered to-do list."""

from models import ExtractedSignals
from settings import MAX_RECOMMENDATIONS

POSITIVE_FILLER = (
    "Excellent SEO fundamentals: keep titles, descriptions and structured data "
    "up to date as the page changes."
)


def _plural(count: int, word: str) -> str:
    return f"{count} {word}" if count == 1 else f"{count} {word}s"


def _security(signals, scores):
    if not signals["security"]["is_https"]:
        return "Switch to HTTPS: serve the page over TLS and redirect all http:// traffic."


def _title(signals, scores):
    if not signals["meta"]["title"]:
        return "Add a descriptive <title> tag (30-60 characters) that names the page topic."


def _headings(signals, scores):
    h1_count = signals["headings"]["h1_count"]
    if h1_count == 0:
        return "Add a single H1 heading that describes the main topic of the page."
    if h1_count > 1:
        return f"Use exactly one H1 heading; the page currently has {h1_count}."


def _indexing(signals, scores):
    if signals["technical"]["is_noindex"]:
        return "Remove the robots 'noindex' directive so search engines can index the page."


def _description(signals, scores):
    if not signals["meta"]["description"]:
        return "Add a compelling meta description (120-160 characters)."


def _images(signals, scores):
    missing = signals["images"]["without_alt"]
    if missing > 0:
        return f"Add descriptive alt text to {_plural(missing, 'image')}."


def _mobile(signals, scores):
    if not signals["mobile"]["has_viewport"]:
        return (
            'Add a responsive viewport tag: <meta name="viewport" '
            'content="width=device-width, initial-scale=1">.'
        )


def _title_length(signals, scores):
    length = signals["meta"]["title_length"]
    if length and not 30 <= length <= 60:
        state = "too short" if length < 30 else "too long"
        return f"Rewrite the title tag to 30-60 characters (currently {length}, {state})."


def _description_length(signals, scores):
    length = signals["meta"]["description_length"]
    if length and not 120 <= length <= 160:
        return f"Adjust the meta description to 120-160 characters (currently {length})."


def _content(signals, scores):
    words = signals["content"]["word_count"]
    if words < 300:
        return f"Expand the page content to at least 300 words (currently {words})."


def _structured_data(signals, scores):
    if not signals["technical"]["has_structured_data"]:
        return "Add JSON-LD structured data (Schema.org) to qualify for rich results."


def _social(signals, scores):
    social = signals["social"]
    if not social["has_open_graph"]:
        return "Add Open Graph tags (og:title, og:description, og:image) for social sharing."
    if not social["has_twitter_card"]:
        return "Add Twitter Card tags (twitter:card, twitter:title) for richer link previews."


def _canonical(signals, scores):
    if not signals["technical"]["has_canonical"]:
        return 'Add a <link rel="canonical"> tag to avoid duplicate-content issues.'


def _links(signals, scores):
    if scores.get("links", 100) < 70:
        return "Add more internal links to related pages to strengthen site structure."


def _url(signals, scores):
    if scores.get("url_structure", 100) < 70:
        return "Simplify the URL: keep it short, lowercase and free of query parameters."


# Evaluated in order; each key contributes at most one entry.
RULES = [
    ("high", "security", _security),
    ("high", "title", _title),
    ("high", "headings", _headings),
    ("high", "indexing", _indexing),
    ("medium", "description", _description),
    ("medium", "images", _images),
    ("medium", "mobile", _mobile),
    ("medium", "title_length", _title_length),
    ("medium", "description_length", _description_length),
    ("low", "content", _content),
    ("low", "structured_data", _structured_data),
    ("low", "social", _social),
    ("low", "canonical", _canonical),
    ("low", "links", _links),
    ("low", "url", _url),
]


def recommend(
    signals: ExtractedSignals,
    category_scores: dict[str, int],
    limit: int = MAX_RECOMMENDATIONS,
) -> list[str]:
    """Return at most `limit` recommendations, most urgent first. Never empty."""
    out: list[str] = []
    for _priority, _key, rule in RULES:
        message = rule(signals, category_scores)
        if message and message not in out:
            out.append(message)

    if not out:
        return [POSITIVE_FILLER]
    return out[: max(1, limit)]
