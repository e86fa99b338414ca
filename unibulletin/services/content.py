"""
Summary and image generation for announcements.

Every public call resolves to a usable value. Provider failures (missing
keys, timeouts, quota errors, malformed responses) are logged and the
next fallback is tried:

- summary: OpenAI -> first 60 words of the description
- image:   Unsplash search redirect -> Pexels search -> picsum placeholder
"""

import asyncio
import logging
import random
import time
from contextlib import asynccontextmanager
from functools import lru_cache
from typing import AsyncIterator, Callable, Optional, Protocol, Sequence
from urllib.parse import quote

import httpx
from openai import AsyncOpenAI

from unibulletin.config import Settings, settings as default_settings

logger = logging.getLogger(__name__)

SUMMARY_WORD_LIMIT = 60
ELLIPSIS = "..."

UNSPLASH_URL = "https://source.unsplash.com/1600x900/?{query}"
PEXELS_SEARCH_URL = "https://api.pexels.com/v1/search"
PLACEHOLDER_URL = "https://picsum.photos/seed/{seed}/1600/900"
PEXELS_MAX_PAGE = 5

SUMMARY_SYSTEM_PROMPT = """\
You write short summaries of university announcements for a student news feed. \
Summarize the announcement in exactly 60 words, keeping dates, deadlines, venues \
and eligibility intact. Make it engaging for students. Reply with the summary text only.\
"""


class ContentGenerator(Protocol):
    """Capability used by the announcement service to derive content."""

    async def summarize(self, text: str) -> str:
        ...

    async def image(self, title: str, tags: Sequence[str]) -> str:
        ...


def generate_fallback_summary(text: str) -> str:
    """
    Deterministic summary: the trimmed text if it has at most 60 words,
    otherwise its first 60 words joined by single spaces plus "...".
    """
    words = text.split()
    if len(words) <= SUMMARY_WORD_LIMIT:
        return text.strip()
    return " ".join(words[:SUMMARY_WORD_LIMIT]) + ELLIPSIS


def build_image_query(title: str, tags: Optional[Sequence[str]]) -> str:
    """Tags joined by spaces, or the title when there are no tags."""
    cleaned = [t.strip() for t in (tags or []) if t and t.strip()]
    if cleaned:
        return " ".join(cleaned)
    return title.strip()


def placeholder_image_url(title: str, now_ms: int) -> str:
    """Placeholder seeded by title and time so retries yield different images."""
    return PLACEHOLDER_URL.format(seed=quote(f"{title}{now_ms}", safe=""))


def _now_ms() -> int:
    return int(time.time() * 1000)


class ContentGenerationAdapter:
    """
    Default ContentGenerator backed by OpenAI and public image providers.

    Clients can be injected for tests; otherwise the OpenAI client is
    created lazily from settings and an httpx client per image call.
    """

    def __init__(
        self,
        settings: Optional[Settings] = None,
        openai_client: Optional[AsyncOpenAI] = None,
        http_client: Optional[httpx.AsyncClient] = None,
        rng: Optional[random.Random] = None,
        clock: Callable[[], int] = _now_ms,
    ):
        self.settings = settings or default_settings
        self._openai_client = openai_client
        self._http_client = http_client
        self._rng = rng or random.Random()
        self._clock = clock

    def _get_openai_client(self) -> Optional[AsyncOpenAI]:
        """Lazy-init OpenAI client. Returns None if no API key."""
        if self._openai_client is not None:
            return self._openai_client
        if not self.settings.openai_api_key:
            return None
        self._openai_client = AsyncOpenAI(api_key=self.settings.openai_api_key)
        return self._openai_client

    @asynccontextmanager
    async def _http(self) -> AsyncIterator[httpx.AsyncClient]:
        if self._http_client is not None:
            yield self._http_client
            return
        async with httpx.AsyncClient(timeout=self.settings.generation_timeout_seconds) as client:
            yield client

    # ---- Summary ----

    async def summarize(self, text: str) -> str:
        """AI summary of text, or the truncation fallback."""
        client = self._get_openai_client()
        if not client:
            logger.warning("OPENAI_API_KEY is not configured - using fallback summary")
            return generate_fallback_summary(text)

        try:
            response = await asyncio.wait_for(
                client.chat.completions.create(
                    model=self.settings.openai_model,
                    messages=[
                        {"role": "system", "content": SUMMARY_SYSTEM_PROMPT},
                        {"role": "user", "content": f"Announcement: {text}"},
                    ],
                    temperature=0.4,
                    max_tokens=200,
                ),
                timeout=self.settings.generation_timeout_seconds,
            )
            summary = response.choices[0].message.content
        except asyncio.TimeoutError:
            logger.error(
                f"OpenAI summary timed out after {self.settings.generation_timeout_seconds}s"
            )
            return generate_fallback_summary(text)
        except Exception as e:
            logger.error(f"OpenAI API error (summary): {e}")
            return generate_fallback_summary(text)

        if not isinstance(summary, str) or not summary.strip():
            logger.warning("OpenAI returned an empty summary - using fallback summary")
            return generate_fallback_summary(text)

        logger.info(f"AI summary generated: '{summary[:40]}...'")
        return summary

    # ---- Image ----

    async def image(self, title: str, tags: Sequence[str]) -> str:
        """Image URL for an announcement; never raises."""
        query = build_image_query(title, tags)

        async with self._http() as http:
            if self.settings.unsplash_enabled:
                url = await self._from_unsplash(http, query)
                if url:
                    return url

            if self.settings.pexels_api_key:
                url = await self._from_pexels(http, query)
                if url:
                    return url

        return placeholder_image_url(title, self._clock())

    async def _from_unsplash(self, http: httpx.AsyncClient, query: str) -> Optional[str]:
        try:
            response = await http.get(
                UNSPLASH_URL.format(query=quote(query, safe="")),
                follow_redirects=True,
                timeout=self.settings.generation_timeout_seconds,
            )
            if response.is_success and str(response.url):
                return str(response.url)
            logger.warning(f"Unsplash returned HTTP {response.status_code}")
        except Exception as e:
            logger.error(f"Unsplash error: {e}")
        return None

    async def _from_pexels(self, http: httpx.AsyncClient, query: str) -> Optional[str]:
        # Random page so regenerations do not keep returning the same photo
        page = self._rng.randint(1, PEXELS_MAX_PAGE)
        try:
            response = await http.get(
                PEXELS_SEARCH_URL,
                params={
                    "query": query,
                    "per_page": 1,
                    "page": page,
                    "orientation": "landscape",
                },
                headers={"Authorization": self.settings.pexels_api_key},
                timeout=self.settings.generation_timeout_seconds,
            )
            if not response.is_success:
                logger.warning(f"Pexels returned HTTP {response.status_code}")
                return None

            for photo in response.json().get("photos") or []:
                width, height = photo.get("width"), photo.get("height")
                if width and height and width < height:
                    continue
                url = (photo.get("src") or {}).get("large2x")
                if url:
                    return url
        except Exception as e:
            logger.error(f"Pexels API error: {e}")
        return None


@lru_cache
def get_content_generator() -> ContentGenerationAdapter:
    """Shared adapter built from application settings."""
    return ContentGenerationAdapter()
