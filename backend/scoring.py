"""Category scorers and the weighted aggregator.

Each scorer reads one slice of the extracted signals and returns an int in
[0, 100]. Bonuses and penalties are applied additively and clamped once at
the end.
"""

import math

from models import ExtractedSignals

CATEGORY_WEIGHTS = {
    "meta": 0.15,
    "headings": 0.10,
    "images": 0.08,
    "content": 0.15,
    "links": 0.08,
    "url_structure": 0.05,
    "mobile": 0.10,
    "technical": 0.10,
    "social": 0.05,
    "security": 0.10,
    "performance": 0.04,
}

CATEGORY_LABELS = {
    "meta": "Meta tags",
    "headings": "Heading structure",
    "images": "Image alt text",
    "content": "Content depth",
    "links": "Link profile",
    "url_structure": "URL structure",
    "mobile": "Mobile friendliness",
    "technical": "Technical SEO",
    "social": "Social sharing tags",
    "security": "HTTPS security",
    "performance": "Page performance",
}

GRADE_THRESHOLDS = [
    (95, "A+"),
    (90, "A"),
    (85, "A-"),
    (80, "B+"),
    (75, "B"),
    (70, "B-"),
    (65, "C+"),
    (60, "C"),
    (55, "C-"),
    (50, "D+"),
    (45, "D"),
]

STRENGTH_THRESHOLD = 80
WEAKNESS_THRESHOLD = 60
STRENGTHS_FILLER = "Good foundation for SEO"
WEAKNESSES_FILLER = "Minor optimizations needed"


def clamp(score: float) -> int:
    return max(0, min(100, int(round(score))))


def score_meta(meta: dict) -> int:
    score = 65
    if meta["title"]:
        score += 20
        if 30 <= meta["title_length"] <= 60:
            score += 10
    if meta["description"]:
        score += 10
        if 120 <= meta["description_length"] <= 160:
            score += 5
    return clamp(score)


def score_headings(headings: dict) -> int:
    score = 70
    h1_count = headings["h1_count"]
    if h1_count == 1:
        score += 20
    elif h1_count == 0:
        score -= 25
    else:
        score -= 15
    if headings["h2_count"] >= 2:
        score += 10
    return clamp(score)


def score_images(images: dict) -> int:
    """No images is a pass, not a failure."""
    total = images["total"]
    if total == 0:
        return 100
    score = round(images["with_alt"] / total * 100)
    if images["without_alt"] > 10:
        score -= 15
    return clamp(score)


def score_content(content: dict) -> int:
    words = content["word_count"]
    score = 60
    if words >= 1000:
        score += 25
    elif words >= 500:
        score += 20
    elif words >= 300:
        score += 15
    elif words >= 150:
        score += 10
    elif words < 50:
        score -= 10
    if content["paragraph_count"] >= 5:
        score += 10
    return clamp(score)


def score_links(links: dict) -> int:
    if links["total"] == 0:
        return 50
    score = 70
    if links["internal"] >= 10:
        score += 15
    elif links["internal"] >= 5:
        score += 10
    if links["external"] >= 3:
        score += 5
    return clamp(score)


def score_url_structure(url: dict) -> int:
    score = 85
    if url["is_https"]:
        score += 15
    overflow = url["length"] - 100
    if overflow > 0:
        score -= min(20, 5 * math.ceil(overflow / 20))
    if url["has_query"]:
        score -= 5
    if url["has_uppercase_path"] or url["has_percent_escapes"]:
        score -= 5
    return clamp(score)


def score_mobile(mobile: dict) -> int:
    return clamp(70 + (25 if mobile["has_viewport"] else 0))


def score_technical(technical: dict) -> int:
    score = 60
    if technical["has_structured_data"]:
        score += 25
    if technical["has_canonical"]:
        score += 10
    if not technical["is_noindex"]:
        score += 5
    return clamp(score)


def score_social(social: dict) -> int:
    score = 50
    if social["has_open_graph"]:
        score += 30
    if social["has_twitter_card"]:
        score += 15
    return clamp(score)


def score_security(security: dict) -> int:
    return 100 if security["is_https"] else 30


def score_performance(performance: dict) -> int:
    """Coarse signal only: a single request latency plus asset counts."""
    score = 70
    if performance["script_count"] <= 10:
        score += 10
    if performance["stylesheet_count"] <= 3:
        score += 10
    duration = performance["fetch_duration_ms"]
    if duration < 1000:
        score += 5
    elif duration > 3000:
        score -= 10
    if performance["page_size_bytes"] < 500 * 1024:
        score += 5
    return clamp(score)


SCORERS = {
    "meta": score_meta,
    "headings": score_headings,
    "images": score_images,
    "content": score_content,
    "links": score_links,
    "url_structure": score_url_structure,
    "mobile": score_mobile,
    "technical": score_technical,
    "social": score_social,
    "security": score_security,
    "performance": score_performance,
}


def score_categories(signals: ExtractedSignals) -> dict[str, int]:
    """Run every scorer whose signal group is present."""
    return {
        category: scorer(signals[category])
        for category, scorer in SCORERS.items()
        if category in signals
    }


def grade_for(score: float) -> str:
    for threshold, grade in GRADE_THRESHOLDS:
        if score >= threshold:
            return grade
    return "F"


def weighted_score(category_scores: dict[str, int]) -> int:
    """Weighted mean over the categories present; absent ones are skipped, not zeroed."""
    total = 0.0
    weight_sum = 0.0
    for category, score in category_scores.items():
        weight = CATEGORY_WEIGHTS.get(category)
        if not weight:
            continue
        total += score * weight
        weight_sum += weight
    if weight_sum == 0:
        return 0
    return clamp(total / weight_sum)


def _label(category: str, score: int) -> str:
    return f"{CATEGORY_LABELS.get(category, category)} ({score}/100)"


def aggregate(category_scores: dict[str, int]) -> dict:
    overall = weighted_score(category_scores)
    strengths = [
        _label(category, score)
        for category, score in category_scores.items()
        if score >= STRENGTH_THRESHOLD
    ]
    weaknesses = [
        _label(category, score)
        for category, score in category_scores.items()
        if score < WEAKNESS_THRESHOLD
    ]
    return {
        "overall": overall,
        "grade": grade_for(overall),
        "strengths": strengths or [STRENGTHS_FILLER],
        "weaknesses": weaknesses or [WEAKNESSES_FILLER],
    }
