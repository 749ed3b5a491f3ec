"""Heuristic term scoring over the in-memory search index."""

from __future__ import annotations

from .models import ArticleRecord, ScoredResult, SearchIndex

MAX_RESULTS = 20
MIN_QUERY_LENGTH = 2

TITLE_EXACT = 100
TITLE_PREFIX = 50
TITLE_SUBSTRING = 20
SUMMARY_HIT = 5
KEYWORD_HIT = 10
TYPE_HIT = 15
CATEGORY_HIT = 15
INLINKS_CAP = 10


def query_terms(query: str) -> list[str]:
    """Lower-case whitespace-separated terms, single characters dropped."""
    return [term for term in (query or "").lower().split() if len(term) > 1]


def score_article(article: ArticleRecord, terms: list[str]) -> int:
    score = 0

    title = article.title.lower()
    for term in terms:
        if title == term:
            score += TITLE_EXACT
        elif title.startswith(term):
            score += TITLE_PREFIX
        elif term in title:
            score += TITLE_SUBSTRING

    summary = article.summary.lower()
    keywords = [keyword.lower() for keyword in article.keywords]
    for term in terms:
        if term in summary:
            score += SUMMARY_HIT
        if any(term in keyword for keyword in keywords):
            score += KEYWORD_HIT

    if article.type is not None and article.type in terms:
        score += TYPE_HIT
    if article.category is not None and article.category in terms:
        score += CATEGORY_HIT

    score += min(article.inlinks, INLINKS_CAP)
    return score


def search(
    query: str,
    index: SearchIndex,
    max_results: int = MAX_RESULTS,
) -> list[ScoredResult]:
    """Rank ``index`` against ``query``.

    Returns at most ``max_results`` entries with a positive score, best first.
    Ties keep index order (the sort is stable).
    """
    if not query or len(query.strip()) < MIN_QUERY_LENGTH:
        return []
    terms = query_terms(query)
    if not terms:
        return []

    scored = []
    for article in index:
        score = score_article(article, terms)
        if score > 0:
            scored.append(ScoredResult.from_article(article, score))
    scored.sort(key=lambda result: result.score, reverse=True)
    return scored[:max_results]
