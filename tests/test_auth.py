"""
Tests for login, tokens, rate limiting and ownership checks.
"""

from datetime import timedelta
from unittest.mock import AsyncMock

import pytest

from unibulletin.auth.jwt import (
    DEV_FALLBACK_SECRET,
    create_access_token,
    resolve_secret_key,
    verify_token,
)
from unibulletin.auth.permissions import authorize, ensure_author
from unibulletin.auth.rate_limit import InMemoryRateLimiter, RedisRateLimiter
from unibulletin.auth.service import authenticate
from unibulletin.config import Settings
from unibulletin.errors import (
    AuthenticationError,
    AuthorizationError,
    ConfigurationError,
    RateLimitError,
    ValidationError,
)
from unibulletin.models import User, UserRole
from unibulletin.services.users import seed_default_users, upsert_default_users
from unibulletin.utils.password import hash_password, verify_password


class FakeClock:
    def __init__(self, now=0.0):
        self.now = now

    def __call__(self):
        return self.now


def _allow_all():
    limiter = AsyncMock()
    limiter.check.return_value = True
    return limiter


# ── Ownership ─────────────────────────────────────────────


class TestAuthorize:
    def test_matching_ids(self):
        assert authorize("42", "42")
        assert authorize(42, "42")
        assert authorize(" t1 ", "t1")

    def test_mismatch_and_missing(self):
        assert not authorize("41", "42")
        assert not authorize(None, "42")
        assert not authorize("", "")
        assert not authorize("42", None)

    def test_ensure_author_raises(self):
        ensure_author("t1", "t1")
        with pytest.raises(AuthorizationError):
            ensure_author("t2", "t1")


# ── Tokens ────────────────────────────────────────────────


class TestTokens:
    def test_round_trip(self):
        settings = Settings(secret_key="s3cret")
        token = create_access_token(7, "teacher", settings=settings)

        assert verify_token(token, settings=settings) == {"user_id": 7, "role": "teacher"}

    def test_wrong_secret_is_rejected(self):
        token = create_access_token(7, "teacher", settings=Settings(secret_key="one"))
        assert verify_token(token, settings=Settings(secret_key="two")) is None

    def test_expired_token_is_rejected(self):
        settings = Settings(secret_key="s3cret")
        token = create_access_token(7, "teacher", expires_delta=timedelta(seconds=-5), settings=settings)
        assert verify_token(token, settings=settings) is None

    def test_garbage_token(self):
        assert verify_token("not-a-jwt", settings=Settings(secret_key="s3cret")) is None

    def test_production_requires_secret(self):
        settings = Settings(secret_key=None, is_production=True)

        with pytest.raises(ConfigurationError):
            create_access_token(1, "teacher", settings=settings)
        assert verify_token("anything", settings=settings) is None

    def test_development_fallback_secret(self):
        assert resolve_secret_key(Settings(secret_key=None, is_production=False)) == DEV_FALLBACK_SECRET


# ── Rate limiting ─────────────────────────────────────────


class TestInMemoryRateLimiter:
    @pytest.mark.asyncio
    async def test_blocks_after_max_attempts(self):
        limiter = InMemoryRateLimiter(2, 60, clock=FakeClock())

        assert await limiter.check("1.2.3.4")
        assert await limiter.check("1.2.3.4")
        assert not await limiter.check("1.2.3.4")
        assert await limiter.check("5.6.7.8")

    @pytest.mark.asyncio
    async def test_window_slides(self):
        clock = FakeClock()
        limiter = InMemoryRateLimiter(1, 60, clock=clock)

        assert await limiter.check("ip")
        clock.now = 59
        assert not await limiter.check("ip")
        clock.now = 61
        assert await limiter.check("ip")

    @pytest.mark.asyncio
    async def test_cleanup_drops_stale_keys(self):
        clock = FakeClock()
        limiter = InMemoryRateLimiter(5, 60, clock=clock)
        await limiter.check("old")
        clock.now = 30
        await limiter.check("new")

        clock.now = 70
        limiter.cleanup()

        assert list(limiter._hits) == ["new"]

    @pytest.mark.asyncio
    async def test_check_prunes_stale_keys(self):
        clock = FakeClock()
        limiter = InMemoryRateLimiter(5, 60, clock=clock, cleanup_interval=3)
        await limiter.check("10.0.0.1")
        await limiter.check("10.0.0.2")

        clock.now = 100
        await limiter.check("10.0.0.3")

        assert list(limiter._hits) == ["10.0.0.3"]


class TestRedisRateLimiter:
    @pytest.mark.asyncio
    async def test_uses_shared_counter(self):
        client = AsyncMock()
        client.eval.side_effect = [1, 2, 3]
        limiter = RedisRateLimiter(client, max_attempts=2, window_seconds=900)

        results = [await limiter.check("ip") for _ in range(3)]

        assert results == [True, True, False]
        args = client.eval.await_args.args
        assert args[1:] == (1, "rate_limit:ip", 900)

    @pytest.mark.asyncio
    async def test_falls_back_when_redis_fails(self):
        client = AsyncMock()
        client.eval.side_effect = ConnectionError("redis down")
        fallback = InMemoryRateLimiter(1, 60, clock=FakeClock())
        limiter = RedisRateLimiter(client, 1, 60, fallback=fallback)

        assert await limiter.check("ip")
        assert not await limiter.check("ip")


# ── Login flow ────────────────────────────────────────────


class TestAuthenticate:
    @pytest.mark.asyncio
    async def test_successful_login(self, db_session):
        await seed_default_users(db_session, "pass123")
        settings = Settings(secret_key="s3cret")

        response = await authenticate(db_session, "teacher1", "pass123", "ip", _allow_all(), settings)

        assert response.user.reg_id == "teacher1"
        assert response.user.role == "teacher"
        assert verify_token(response.token, settings=settings)["user_id"] == response.user.id

    @pytest.mark.asyncio
    async def test_wrong_password_and_unknown_user_look_the_same(self, db_session):
        await seed_default_users(db_session, "pass123")

        with pytest.raises(AuthenticationError) as wrong_password:
            await authenticate(db_session, "teacher1", "nope", "ip", _allow_all())
        with pytest.raises(AuthenticationError) as unknown_user:
            await authenticate(db_session, "ghost", "pass123", "ip", _allow_all())

        assert wrong_password.value.message == unknown_user.value.message == "Invalid credentials"

    @pytest.mark.asyncio
    async def test_plaintext_password_rows_never_match(self, db_session):
        db_session.add(User(reg_id="legacy", password_hash="pass123", role=UserRole.STUDENT))
        await db_session.flush()

        with pytest.raises(AuthenticationError):
            await authenticate(db_session, "legacy", "pass123", "ip", _allow_all())

    @pytest.mark.asyncio
    @pytest.mark.parametrize("reg_id, password", [("", "x"), ("teacher1", ""), (None, "x"), ("  ", "x")])
    async def test_missing_input_is_rejected_before_rate_limit(self, db_session, reg_id, password):
        limiter = _allow_all()

        with pytest.raises(ValidationError):
            await authenticate(db_session, reg_id, password, "ip", limiter)
        limiter.check.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_rate_limited(self, db_session):
        await seed_default_users(db_session, "pass123")
        limiter = InMemoryRateLimiter(2, 900, clock=FakeClock())

        for _ in range(2):
            with pytest.raises(AuthenticationError):
                await authenticate(db_session, "teacher1", "bad", "9.9.9.9", limiter)
        with pytest.raises(RateLimitError):
            await authenticate(db_session, "teacher1", "pass123", "9.9.9.9", limiter)


# ── Accounts ──────────────────────────────────────────────


class TestDefaultUsers:
    def test_password_hashing(self):
        hashed = hash_password("test_password_123")

        assert hashed != "test_password_123"
        assert verify_password("test_password_123", hashed)
        assert not verify_password("wrong_password", hashed)
        assert not verify_password("anything", "")

    @pytest.mark.asyncio
    async def test_seed_only_on_empty_table(self, db_session):
        first = await seed_default_users(db_session, "pass123")
        second = await seed_default_users(db_session, "pass123")

        assert sorted(u.reg_id for u in first) == ["student1", "teacher1"]
        assert second == []

    @pytest.mark.asyncio
    async def test_upsert_resets_passwords(self, db_session):
        await seed_default_users(db_session, "old")
        users = await upsert_default_users(db_session, "new")

        assert len(users) == 2
        assert all(verify_password("new", u.password_hash) for u in users)
