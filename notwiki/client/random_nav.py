from __future__ import annotations

import logging
import random
from typing import Callable, Optional, Sequence

import httpx
from pydantic import ValidationError

from .config import SiteConfig
from .loader import IndexLoader
from .models import parse_random_candidates

logger = logging.getLogger(__name__)

NOT_FOUND_MESSAGE = "Unable to find random article"


class RandomNavigator:
    """Send the user to a uniformly chosen page.

    The dedicated random-candidate artifact is tried first; the search index
    is the fallback. The user only hears about it when both come up empty.
    """

    def __init__(
        self,
        client: httpx.AsyncClient,
        config: SiteConfig,
        loader: IndexLoader,
        navigate: Callable[[str], None],
        notify: Callable[[str], None],
        rng: Optional[random.Random] = None,
    ) -> None:
        self._client = client
        self.config = config
        self.loader = loader
        self._navigate = navigate
        self._notify = notify
        self.rng = rng or random.Random()

    async def navigate(self) -> Optional[str]:
        filename = self._pick(await self._primary_candidates())
        if filename is None:
            logger.info("No random candidates available, falling back to search index")
            filename = self._pick([article.filename for article in await self.loader.load()])
        if filename is None:
            self._notify(NOT_FOUND_MESSAGE)
            return None
        self._navigate(self.config.page_url_for(filename))
        return filename

    async def _primary_candidates(self) -> list[str]:
        url = self.config.random_url
        try:
            response = await self._client.get(url)
            response.raise_for_status()
            payload = parse_random_candidates(response.content)
        except httpx.HTTPError as exc:
            logger.warning(f"Error loading random candidates from {url}: {exc}")
            return []
        except ValidationError as exc:
            logger.warning(f"Malformed random candidates at {url}: {exc.error_count()} errors")
            return []
        return [candidate.filename for candidate in payload.articles]

    def _pick(self, filenames: Sequence[str]) -> Optional[str]:
        if not filenames:
            return None
        return filenames[self.rng.randrange(len(filenames))]
