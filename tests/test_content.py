"""
Tests for summary and image generation.

Covers:
- Deterministic fallback summary
- OpenAI summary with missing key, errors, timeouts and empty replies
- Image provider chain: Unsplash -> Pexels -> placeholder
"""

import asyncio
import random
from types import SimpleNamespace
from unittest.mock import AsyncMock
from urllib.parse import quote, unquote

import httpx
import pytest

from unibulletin.config import Settings
from unibulletin.services.content import (
    ContentGenerationAdapter,
    build_image_query,
    generate_fallback_summary,
    placeholder_image_url,
)

FIXED_MS = 1_700_000_000_000


def _settings(**overrides):
    values = {
        "openai_api_key": "",
        "pexels_api_key": "",
        "unsplash_enabled": False,
        "generation_timeout_seconds": 1.0,
    }
    values.update(overrides)
    return Settings(**values)


def _openai_returning(content):
    reply = SimpleNamespace(choices=[SimpleNamespace(message=SimpleNamespace(content=content))])
    return SimpleNamespace(
        chat=SimpleNamespace(completions=SimpleNamespace(create=AsyncMock(return_value=reply)))
    )


def _adapter(handler=None, **overrides):
    http = httpx.AsyncClient(transport=httpx.MockTransport(handler)) if handler else None
    return ContentGenerationAdapter(
        settings=_settings(**overrides),
        http_client=http,
        rng=random.Random(7),
        clock=lambda: FIXED_MS,
    )


# ── Fallback summary ──────────────────────────────────────


class TestFallbackSummary:
    def test_long_text_is_cut_to_sixty_words(self):
        words = [f"word{i}" for i in range(80)]
        summary = generate_fallback_summary(" ".join(words))

        assert summary == " ".join(words[:60]) + "..."
        assert len(summary[:-3].split()) == 60

    def test_long_text_whitespace_is_collapsed(self):
        text = "  ".join(["alpha"] * 61) + "\n"
        assert generate_fallback_summary(text) == " ".join(["alpha"] * 60) + "..."

    def test_short_text_is_returned_trimmed(self):
        assert generate_fallback_summary("  Exam on   Monday  ") == "Exam on   Monday"

    def test_exactly_sixty_words_has_no_ellipsis(self):
        text = " ".join(["w"] * 60)
        assert generate_fallback_summary(text) == text

    def test_is_deterministic(self):
        text = " ".join(str(i) for i in range(100))
        assert generate_fallback_summary(text) == generate_fallback_summary(text)


# ── AI summary ────────────────────────────────────────────


class TestSummarize:
    @pytest.mark.asyncio
    async def test_without_api_key_uses_fallback(self):
        adapter = ContentGenerationAdapter(settings=_settings())
        text = " ".join(["hello"] * 70)

        assert await adapter.summarize(text) == generate_fallback_summary(text)

    @pytest.mark.asyncio
    async def test_returns_model_text_verbatim(self):
        client = _openai_returning("  Sixty engaging words.  ")
        adapter = ContentGenerationAdapter(settings=_settings(), openai_client=client)

        assert await adapter.summarize("Library closes early") == "  Sixty engaging words.  "
        kwargs = client.chat.completions.create.await_args.kwargs
        assert kwargs["model"] == "gpt-4o-mini"
        assert "Library closes early" in kwargs["messages"][-1]["content"]

    @pytest.mark.asyncio
    async def test_provider_error_uses_fallback(self):
        client = _openai_returning("unused")
        client.chat.completions.create.side_effect = RuntimeError("quota exceeded")
        adapter = ContentGenerationAdapter(settings=_settings(), openai_client=client)

        assert await adapter.summarize("Short notice") == "Short notice"

    @pytest.mark.asyncio
    async def test_empty_reply_uses_fallback(self):
        adapter = ContentGenerationAdapter(
            settings=_settings(), openai_client=_openai_returning("   ")
        )
        assert await adapter.summarize("Short notice") == "Short notice"

    @pytest.mark.asyncio
    async def test_timeout_uses_fallback(self):
        async def slow_create(**kwargs):
            await asyncio.sleep(5)

        client = SimpleNamespace(
            chat=SimpleNamespace(completions=SimpleNamespace(create=slow_create))
        )
        adapter = ContentGenerationAdapter(
            settings=_settings(generation_timeout_seconds=0.05), openai_client=client
        )

        assert await adapter.summarize("Short notice") == "Short notice"


# ── Image chain ───────────────────────────────────────────


class TestImageQuery:
    def test_tags_take_precedence(self):
        assert build_image_query("Sports Day", ["football", " ", "track"]) == "football track"

    def test_title_when_no_tags(self):
        assert build_image_query("  Sports Day ", []) == "Sports Day"

    def test_placeholder_depends_on_time(self):
        first = placeholder_image_url("Sports Day", 1)
        second = placeholder_image_url("Sports Day", 2)

        assert first == f"https://picsum.photos/seed/{quote('Sports Day1', safe='')}/1600/900"
        assert first != second


class TestImage:
    @pytest.mark.asyncio
    async def test_unsplash_redirect_target_is_used(self):
        seen = []

        def handler(request):
            seen.append(request.url)
            if request.url.host == "source.unsplash.com":
                return httpx.Response(
                    302, headers={"Location": "https://images.unsplash.com/photo-42?w=1600"}
                )
            return httpx.Response(200, content=b"jpeg")

        adapter = _adapter(handler, unsplash_enabled=True)
        url = await adapter.image("Exam Week", [])

        assert url == "https://images.unsplash.com/photo-42?w=1600"
        assert unquote(seen[0].query.decode()) == "Exam Week"

    @pytest.mark.asyncio
    async def test_pexels_used_when_unsplash_fails(self):
        pexels_requests = []

        def handler(request):
            if request.url.host == "source.unsplash.com":
                return httpx.Response(503)
            pexels_requests.append(request)
            return httpx.Response(
                200,
                json={"photos": [{"width": 1600, "height": 900, "src": {"large2x": "https://pexels.test/1.jpg"}}]},
            )

        adapter = _adapter(handler, unsplash_enabled=True, pexels_api_key="pk")
        url = await adapter.image("Hackathon", ["coding", "laptops"])

        assert url == "https://pexels.test/1.jpg"
        request = pexels_requests[0]
        assert request.headers["Authorization"] == "pk"
        assert request.url.params["query"] == "coding laptops"
        assert request.url.params["orientation"] == "landscape"
        assert 1 <= int(request.url.params["page"]) <= 5

    @pytest.mark.asyncio
    async def test_pexels_skips_portrait_photos(self):
        def handler(request):
            return httpx.Response(
                200,
                json={
                    "photos": [
                        {"width": 800, "height": 1200, "src": {"large2x": "https://pexels.test/tall.jpg"}},
                        {"width": 1200, "height": 800, "src": {"large2x": "https://pexels.test/wide.jpg"}},
                    ]
                },
            )

        adapter = _adapter(handler, pexels_api_key="pk")
        assert await adapter.image("Hackathon", []) == "https://pexels.test/wide.jpg"

    @pytest.mark.asyncio
    async def test_placeholder_when_every_provider_fails(self):
        def handler(request):
            raise httpx.ConnectError("offline", request=request)

        adapter = _adapter(handler, unsplash_enabled=True, pexels_api_key="pk")
        url = await adapter.image("Sports Day", ["football"])

        assert url == placeholder_image_url("Sports Day", FIXED_MS)

    @pytest.mark.asyncio
    async def test_placeholder_when_pexels_has_no_photos(self):
        adapter = _adapter(lambda request: httpx.Response(200, json={"photos": []}), pexels_api_key="pk")
        assert await adapter.image("Sports Day", []) == placeholder_image_url("Sports Day", FIXED_MS)

    @pytest.mark.asyncio
    async def test_no_providers_configured(self):
        adapter = _adapter()
        assert await adapter.image("Convocation", []) == placeholder_image_url("Convocation", FIXED_MS)
