#!/usr/bin/env python3
"""Create a sample Not-Wikipedia site tree for local browsing and client checks.

Writes the same artifact layout the site build produces:

    index.html
    api/search-index.json
    api/random.json
    pages/<slug>.html
    fragments/<slug>.html
    wiki/index.html
    categories/<category>.html
"""
from __future__ import annotations

import argparse
import html
import json
import random
import time
from pathlib import Path

from faker import Faker

TYPES = ["article", "person", "place", "event", "concept"]
CATEGORIES = ["history", "science", "geography", "culture", "technology"]

FAKER = Faker()


def main() -> None:
    parser = argparse.ArgumentParser(description="Create a sample Not-Wikipedia site.")
    parser.add_argument(
        "destination",
        nargs="?",
        default="./site-sample",
        help="Path where the site should be created (default: site-sample)",
    )
    parser.add_argument("--pages", type=int, default=60, help="Number of articles to generate")
    parser.add_argument("--serve", action="store_true", help="Serve the site after generating it")
    args = parser.parse_args()

    dest = Path(args.destination).resolve()
    random.seed(42)
    FAKER.seed_instance(42)

    records = _build_records(args.pages)
    _write_site(dest, records)
    print(f"Sample site with {len(records)} articles created at: {dest}")

    if args.serve:
        _serve(dest)


def _build_records(count: int) -> list[dict]:
    records: list[dict] = []
    used: set[str] = set()
    while len(records) < count:
        title = FAKER.unique.catch_phrase().title()
        slug = "-".join(word.lower() for word in title.split() if word.isalnum())
        if not slug or slug in used:
            continue
        used.add(slug)
        records.append(
            {
                "filename": f"{slug}.html",
                "title": title,
                "summary": FAKER.sentence(nb_words=14),
                "keywords": FAKER.words(nb=random.randint(2, 5)),
                "type": random.choice(TYPES),
                "category": random.choice(CATEGORIES),
                "inlinks": 0,
            }
        )
    # Sprinkle links so inlink counts vary
    for record in records:
        for target in random.sample(records, k=min(4, len(records))):
            if target is not record:
                target["inlinks"] += 1
    return records


def _article_body(record: dict, records: list[dict]) -> str:
    related = random.sample(records, k=min(3, len(records)))
    links = "".join(
        f'<li><a href="{other["filename"]}">{html.escape(other["title"])}</a></li>' for other in related
    )
    paragraphs = "".join(f"<p>{html.escape(p)}</p>" for p in FAKER.paragraphs(nb=3))
    return (
        f"<h1>{html.escape(record['title'])}</h1>"
        f"<p class=\"lead\">{html.escape(record['summary'])}</p>"
        f"{paragraphs}<h2>See also</h2><ul>{links}</ul>"
    )


def _write_site(dest: Path, records: list[dict]) -> None:
    for sub in ("api", "pages", "fragments", "wiki", "categories"):
        (dest / sub).mkdir(parents=True, exist_ok=True)

    (dest / "api" / "search-index.json").write_text(json.dumps(records, indent=2), encoding="utf-8")
    picks = random.sample(records, k=min(20, len(records)))
    (dest / "api" / "random.json").write_text(
        json.dumps({"articles": [{"filename": r["filename"]} for r in picks]}, indent=2),
        encoding="utf-8",
    )

    for record in records:
        body = _article_body(record, records)
        (dest / "fragments" / record["filename"]).write_text(
            f"<div class=\"preview-content\"><h3>{html.escape(record['title'])}</h3>"
            f"<p>{html.escape(record['summary'])}</p></div>",
            encoding="utf-8",
        )
        (dest / "pages" / record["filename"]).write_text(_page(record["title"], body), encoding="utf-8")

    listing = "".join(
        f'<li><a href="../pages/{r["filename"]}">{html.escape(r["title"])}</a></li>' for r in records
    )
    (dest / "wiki" / "index.html").write_text(_page("All articles", f"<ul>{listing}</ul>"), encoding="utf-8")
    for category in CATEGORIES:
        members = "".join(
            f'<li><a href="../pages/{r["filename"]}">{html.escape(r["title"])}</a></li>'
            for r in records
            if r["category"] == category
        )
        (dest / "categories" / f"{category}.html").write_text(
            _page(category.title(), f"<ul>{members}</ul>"), encoding="utf-8"
        )
    (dest / "index.html").write_text(
        _page("Not-Wikipedia", '<p><a href="wiki/index.html">All articles</a></p>'), encoding="utf-8"
    )


def _page(title: str, body: str) -> str:
    return (
        "<!DOCTYPE html><html><head><meta charset=\"utf-8\">"
        f"<title>{html.escape(title)}</title></head><body>{body}</body></html>"
    )


def _serve(dest: Path) -> None:
    from notwiki.webserver.server import SiteServer

    server = SiteServer(str(dest))
    server.start()
    print(f"Serving at {server.get_url()} (Ctrl+C to stop)")
    try:
        while True:
            time.sleep(1)
    except KeyboardInterrupt:
        server.stop()


if __name__ == "__main__":
    main()
