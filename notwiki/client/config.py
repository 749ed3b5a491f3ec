from __future__ import annotations

import json
import logging
from dataclasses import dataclass, fields, replace
from pathlib import Path
from typing import Optional
from urllib.parse import urljoin, urlparse

logger = logging.getLogger(__name__)

# Pages under these directories resolve artifacts one level up.
NESTED_DIRS = ("/wiki/", "/categories/")

SEARCH_INDEX_PATH = "api/search-index.json"
FRAGMENTS_PATH = "fragments/"
RANDOM_PATH = "api/random.json"
PAGES_PATH = "pages/"

PAGE_SUFFIX = ".html"


class SiteConfigError(ValueError):
    """Raised when a configuration value is unusable."""


def get_base_path(pathname: str) -> str:
    """Return the relative prefix leading from a page to the site root."""
    path = pathname or ""
    if any(marker in path for marker in NESTED_DIRS):
        return "../"
    return ""


@dataclass(frozen=True)
class SiteConfig:
    page_url: str = "http://localhost/"
    debounce_delay: float = 0.2
    max_results: int = 20
    preview_delay: float = 0.3
    hide_grace: float = 0.1
    popover_gap: int = 8
    edge_margin: int = 20
    min_offset: int = 10

    def __post_init__(self) -> None:
        for name in ("debounce_delay", "preview_delay", "hide_grace"):
            if getattr(self, name) < 0:
                raise SiteConfigError(f"{name} must not be negative")
        if self.max_results < 1:
            raise SiteConfigError("max_results must be at least 1")
        if not urlparse(self.page_url).scheme:
            raise SiteConfigError(f"page_url must be absolute: {self.page_url!r}")

    @classmethod
    def for_page(cls, page_url: str, **overrides) -> "SiteConfig":
        return cls(page_url=page_url, **overrides)

    @property
    def base_path(self) -> str:
        return get_base_path(urlparse(self.page_url).path)

    @property
    def pages_path(self) -> str:
        """Relative prefix used in rendered result links."""
        return self.base_path + PAGES_PATH

    @property
    def search_index_url(self) -> str:
        return urljoin(self.page_url, self.base_path + SEARCH_INDEX_PATH)

    @property
    def fragments_url(self) -> str:
        return urljoin(self.page_url, self.base_path + FRAGMENTS_PATH)

    @property
    def random_url(self) -> str:
        return urljoin(self.page_url, self.base_path + RANDOM_PATH)

    def page_href(self, filename: str) -> str:
        return self.pages_path + filename

    def page_url_for(self, filename: str) -> str:
        """Absolute URL of a page, used as a navigation target."""
        return urljoin(self.page_url, self.page_href(filename))

    def fragment_url_for(self, filename: str) -> str:
        # Appended, not urljoin-ed: filenames such as "Talk:Paris.html" contain a colon.
        return self.fragments_url + filename


_TUNABLES = {f.name for f in fields(SiteConfig)} - {"page_url"}


def _read_overrides(path: Path) -> dict:
    """Return the parsed override file, or an empty dict on error/missing."""
    if not path.exists():
        return {}
    try:
        payload = json.loads(path.read_text(encoding="utf-8"))
    except (json.JSONDecodeError, OSError) as exc:
        logger.warning(f"Ignoring unreadable config {path}: {exc}")
        return {}
    if not isinstance(payload, dict):
        logger.warning(f"Ignoring config {path}: expected a JSON object")
        return {}
    return payload


def load_site_config(path: Optional[Path | str], page_url: str) -> SiteConfig:
    """Build a config for ``page_url`` with tunables overridden from a JSON file."""
    config = SiteConfig.for_page(page_url)
    if path is None:
        return config
    payload = _read_overrides(Path(path))
    overrides = {key: value for key, value in payload.items() if key in _TUNABLES}
    unknown = set(payload) - _TUNABLES
    if unknown:
        logger.debug(f"Unknown config keys ignored: {', '.join(sorted(unknown))}")
    try:
        return replace(config, **overrides)
    except TypeError as exc:
        raise SiteConfigError(f"Invalid value in {path}: {exc}") from exc
