"""Display payload for ranked search results.

``render`` is markup-agnostic; ``RenderedResults.to_html`` produces the
fragment the results container shows.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from typing import Sequence

from markupsafe import Markup, escape

from .models import ScoredResult
from .ranker import query_terms

DEFAULT_TYPE = "article"


def highlight(text: str, query: str) -> Markup:
    """Escape ``text`` and wrap each query term occurrence in ``<mark>``.

    All terms go into one alternation, longest first, and matching runs on the
    raw text, so a term never matches inside a marker or an HTML entity.
    """
    if not text:
        return Markup("")
    terms = query_terms(query)
    if not terms:
        return escape(text)

    alternation = "|".join(re.escape(term) for term in sorted(set(terms), key=len, reverse=True))
    pattern = re.compile(f"({alternation})", re.IGNORECASE)
    parts = pattern.split(text)
    # split() with one capture group alternates: plain, match, plain, ...
    out = Markup("")
    for position, part in enumerate(parts):
        if position % 2:
            out += Markup("<mark>%s</mark>") % part
        else:
            out += escape(part)
    return out


@dataclass(frozen=True)
class ResultItem:
    href: str
    title_html: Markup
    type: str
    summary_html: Markup

    @property
    def type_class(self) -> str:
        return f"type-{self.type}"


@dataclass(frozen=True)
class RenderedResults:
    query: str
    items: tuple[ResultItem, ...] = field(default_factory=tuple)

    @property
    def empty(self) -> bool:
        return not self.items

    @property
    def header(self) -> str:
        count = len(self.items)
        return f"{count} result{'' if count == 1 else 's'}"

    @property
    def message(self) -> Markup:
        return Markup('No articles found for "%s"') % self.query

    def to_html(self) -> Markup:
        if self.empty:
            return Markup('<div class="search-no-results">%s</div>') % self.message
        rows = Markup("").join(
            Markup(
                '<li class="search-result-item">'
                '<a href="%s" class="search-result-link">'
                '<span class="search-result-title">%s</span>'
                '<span class="type-badge %s">%s</span>'
                "</a>"
                '<p class="search-result-summary">%s</p>'
                "</li>"
            )
            % (item.href, item.title_html, item.type_class, item.type, item.summary_html)
            for item in self.items
        )
        return (
            Markup('<div class="search-results-header">%s</div>') % self.header
            + Markup('<ul class="search-results-list">%s</ul>') % rows
        )


def render(results: Sequence[ScoredResult], query: str, pages_path: str = "pages/") -> RenderedResults:
    items = tuple(
        ResultItem(
            href=pages_path + result.filename,
            title_html=highlight(result.title, query),
            type=result.type or DEFAULT_TYPE,
            summary_html=highlight(result.summary, query),
        )
        for result in results
    )
    return RenderedResults(query=query, items=items)
