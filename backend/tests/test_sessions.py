"""
Snippetbox — Session Store and Manager Unit Tests
==================================================

What:  Tests for MemoryStore, Session and SessionManager.
Why:   Session state decides who is authenticated. Expiry, token renewal
       and the cookie contract must hold exactly.
How:   A controllable clock replaces wall time; responses are plain
       Starlette responses whose Set-Cookie header is inspected.

What we test:
    ✅ Expired records are invisible and swept by cleanup()
    ✅ Unmodified sessions are not stored and send no cookie
    ✅ Modified sessions are stored with a fixed deadline
    ✅ renew_token() invalidates the old token
    ✅ A commit racing a logout never brings the deleted token back
    ✅ pop() is read-once
"""

from datetime import datetime, timedelta, timezone

import pytest
from starlette.responses import PlainTextResponse

from snippetbox.sessions import AUTH_USER_KEY, FLASH_KEY, MemoryStore, Session, SessionManager
from snippetbox.sessions.manager import SessionStatus


class FakeClock:
    def __init__(self):
        self.now = datetime(2024, 1, 1, 12, 0, tzinfo=timezone.utc)

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs) -> None:
        self.now += timedelta(**kwargs)


class TestMemoryStore:

    def setup_method(self):
        self.clock = FakeClock()
        self.store = MemoryStore(clock=self.clock)

    @pytest.mark.asyncio
    async def test_commit_and_find(self):
        await self.store.commit("tok", {"a": 1}, self.clock.now + timedelta(hours=1))

        record = await self.store.find("tok")
        assert record is not None
        assert record.values == {"a": 1}

    @pytest.mark.asyncio
    async def test_find_returns_copy(self):
        await self.store.commit("tok", {"a": 1}, self.clock.now + timedelta(hours=1))

        record = await self.store.find("tok")
        record.values["a"] = 2

        assert (await self.store.find("tok")).values == {"a": 1}

    @pytest.mark.asyncio
    async def test_expired_record_is_dropped_on_lookup(self):
        await self.store.commit("tok", {}, self.clock.now + timedelta(minutes=5))
        self.clock.advance(minutes=5)

        assert await self.store.find("tok") is None
        assert "tok" not in self.store

    @pytest.mark.asyncio
    async def test_cleanup_removes_only_expired(self):
        await self.store.commit("old", {}, self.clock.now + timedelta(minutes=1))
        await self.store.commit("new", {}, self.clock.now + timedelta(hours=1))
        self.clock.advance(minutes=2)

        assert self.store.cleanup() == 1
        assert "old" not in self.store
        assert "new" in self.store
        assert len(self.store) == 1

    @pytest.mark.asyncio
    async def test_delete_unknown_token_is_noop(self):
        await self.store.delete("missing")
        assert len(self.store) == 0

    @pytest.mark.asyncio
    async def test_replace_updates_live_record(self):
        deadline = self.clock.now + timedelta(hours=1)
        await self.store.commit("tok", {"a": 1}, deadline)

        assert await self.store.replace("tok", {"a": 2}, deadline)
        assert (await self.store.find("tok")).values == {"a": 2}

    @pytest.mark.asyncio
    async def test_replace_does_not_recreate_deleted_record(self):
        deadline = self.clock.now + timedelta(hours=1)
        await self.store.commit("tok", {"a": 1}, deadline)
        await self.store.delete("tok")

        assert not await self.store.replace("tok", {"a": 2}, deadline)
        assert "tok" not in self.store


class TestSession:

    def test_new_session_is_unmodified_and_anonymous(self):
        session = Session("tok")
        assert session.status is SessionStatus.UNMODIFIED
        assert not session.is_authenticated

    def test_pop_is_read_once(self):
        session = Session("tok", {FLASH_KEY: "hello"})

        assert session.pop(FLASH_KEY) == "hello"
        assert session.pop(FLASH_KEY, "") == ""
        assert session.status is SessionStatus.MODIFIED

    def test_pop_missing_key_does_not_modify(self):
        session = Session("tok")
        assert session.pop(FLASH_KEY) is None
        assert session.status is SessionStatus.UNMODIFIED

    def test_remove_missing_key_does_not_modify(self):
        session = Session("tok")
        session.remove(AUTH_USER_KEY)
        assert session.status is SessionStatus.UNMODIFIED

    def test_renew_token_changes_token_and_keeps_values(self):
        session = Session("old", {AUTH_USER_KEY: 3})
        session.renew_token()

        assert session.token != "old"
        assert session.stale_tokens == ["old"]
        assert session.authenticated_user_id == 3


class TestSessionManager:

    def setup_method(self):
        self.clock = FakeClock()
        self.store = MemoryStore(clock=self.clock)
        self.manager = SessionManager(
            self.store,
            lifetime=timedelta(hours=12),
            cookie_secure=False,
            clock=self.clock,
        )

    @pytest.mark.asyncio
    async def test_load_without_token_creates_new_session(self):
        session = await self.manager.load(None)
        assert session.is_new
        assert session.deadline == self.clock.now + timedelta(hours=12)

    @pytest.mark.asyncio
    async def test_unmodified_session_sends_no_cookie(self):
        session = await self.manager.load(None)
        response = PlainTextResponse("ok")

        await self.manager.commit(session, response)

        assert "set-cookie" not in response.headers
        assert len(self.store) == 0

    @pytest.mark.asyncio
    async def test_modified_session_is_stored_with_cookie(self):
        session = await self.manager.load(None)
        session.put(FLASH_KEY, "saved")
        response = PlainTextResponse("ok")

        await self.manager.commit(session, response)

        cookie = response.headers["set-cookie"]
        assert cookie.startswith(f"session={session.token}")
        assert "HttpOnly" in cookie
        assert "SameSite=lax" in cookie
        assert (await self.store.find(session.token)).values == {FLASH_KEY: "saved"}

    @pytest.mark.asyncio
    async def test_lifetime_is_fixed_not_sliding(self):
        session = await self.manager.load(None)
        session.put("k", "v")
        await self.manager.commit(session, PlainTextResponse("ok"))
        deadline = session.deadline

        self.clock.advance(hours=6)
        again = await self.manager.load(session.token)
        again.put("k", "w")
        await self.manager.commit(again, PlainTextResponse("ok"))

        assert again.deadline == deadline
        self.clock.advance(hours=6)
        assert (await self.manager.load(session.token)).is_new

    @pytest.mark.asyncio
    async def test_renewed_token_invalidates_old_one(self):
        session = await self.manager.load(None)
        session.put("k", "v")
        await self.manager.commit(session, PlainTextResponse("ok"))
        old_token = session.token

        self.clock.advance(hours=1)
        loaded = await self.manager.load(old_token)
        loaded.renew_token()
        loaded.put(AUTH_USER_KEY, 7)
        await self.manager.commit(loaded, PlainTextResponse("ok"))

        assert old_token not in self.store
        assert (await self.manager.load(old_token)).is_new
        assert loaded.deadline == self.clock.now + timedelta(hours=12)
        assert (await self.store.find(loaded.token)).values[AUTH_USER_KEY] == 7

    @pytest.mark.asyncio
    async def test_unknown_token_gets_fresh_session(self):
        session = await self.manager.load("forged-token")
        assert session.is_new
        assert session.token != "forged-token"

    @pytest.mark.asyncio
    async def test_commit_after_concurrent_logout_does_not_resurrect_token(self):
        session = await self.manager.load(None)
        session.put(AUTH_USER_KEY, 7)
        session.put(FLASH_KEY, "Snippet successfully created!")
        await self.manager.commit(session, PlainTextResponse("ok"))
        authenticated_token = session.token

        # Two requests load the same authenticated session
        viewing = await self.manager.load(authenticated_token)
        logging_out = await self.manager.load(authenticated_token)

        logging_out.renew_token()
        logging_out.remove(AUTH_USER_KEY)
        await self.manager.commit(logging_out, PlainTextResponse("ok"))

        viewing.pop(FLASH_KEY)
        response = PlainTextResponse("ok")
        await self.manager.commit(viewing, response)

        assert authenticated_token not in self.store
        assert "set-cookie" not in response.headers
        assert not (await self.manager.load(authenticated_token)).is_authenticated
        assert len(self.store) == 1
