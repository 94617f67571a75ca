"""
Unit tests for the login-completion handler in social.graze.identity.auth.login

Runs `oauth_v2` against the in-memory identity store to cover first and repeat logins,
concurrent first logins and failure reporting.
"""

import asyncio
import pytest

from social.graze.identity.auth.login import LoginResult, V2, oauth_v2
from social.graze.identity.model.user import User
from tests.test_helpers import FakeIdentityStore, generate_test_datetime, make_profile


@pytest.fixture
def store():
    return FakeIdentityStore()


class TestLoginResult:
    """Test suite for the LoginResult outcome type."""

    def test_success(self):
        user = User(guid="u1", name="Ada", created_at=generate_test_datetime())
        result = LoginResult.success(user)
        assert result.ok
        assert result.user is user
        assert result.error is None

    def test_failure(self):
        error = RuntimeError("boom")
        result = LoginResult.failure(error)
        assert not result.ok
        assert result.user is None
        assert result.error is error

    def test_requires_exactly_one_outcome(self):
        with pytest.raises(ValueError):
            LoginResult()
        with pytest.raises(ValueError):
            LoginResult(
                user=User(guid="u1", name="Ada", created_at=generate_test_datetime()),
                error=RuntimeError("boom"),
            )

    def test_v2_alias(self):
        assert V2 is oauth_v2


class TestFirstLogin:
    """A profile with an unseen (provider, uid) creates one identity and one user."""

    async def test_creates_identity_and_user(self, store):
        result = await oauth_v2(store, "access-1", None, make_profile())

        assert result.ok
        assert result.user.name == "Ada"
        assert list(store.identities) == [("github", "42")]
        assert list(store.users) == [result.user.guid]

        identity = store.identities[("github", "42")]
        assert identity.user_guid == result.user.guid
        assert identity.access_token == "access-1"

    async def test_persists_profile_snapshot(self, store):
        profile = make_profile()
        await oauth_v2(store, "access-1", None, profile)

        assert store.saved == [
            {
                "guid": store.identities[("github", "42")].guid,
                "access_token": "access-1",
                "refresh_token": None,
                "profile_json": profile.as_json(),
            }
        ]
        assert store.saved[0]["profile_json"]["displayName"] == "Ada"

    async def test_records_refresh_token_when_issued(self, store):
        await oauth_v2(store, "access-1", "refresh-1", make_profile())
        assert store.identities[("github", "42")].refresh_token == "refresh-1"

    async def test_operation_order(self, store):
        await oauth_v2(store, "access-1", None, make_profile())

        assert store.calls[0] == "find_or_create"
        assert set(store.calls[1:3]) == {"get_user", "save"}
        assert store.calls[3:] == ["create_user", "set_user"]


class TestRepeatLogin:
    """A profile matching an already linked identity returns the same user."""

    async def test_returns_previously_linked_user(self, store):
        first = await oauth_v2(store, "access-1", None, make_profile())
        second = await oauth_v2(store, "access-2", None, make_profile())

        assert second.ok
        assert second.user is first.user
        assert len(store.users) == 1
        assert "create_user" not in store.calls[5:]

    async def test_updates_token_and_profile(self, store):
        await oauth_v2(store, "access-1", None, make_profile())
        await oauth_v2(store, "access-2", None, make_profile(display_name="Ada L."))

        identity = store.identities[("github", "42")]
        assert identity.access_token == "access-2"
        assert identity.profile_json["displayName"] == "Ada L."
        assert store.saved[-1]["access_token"] == "access-2"

    async def test_keeps_refresh_token_when_not_reissued(self, store):
        await oauth_v2(store, "access-1", "refresh-1", make_profile())
        await oauth_v2(store, "access-2", None, make_profile())
        assert store.identities[("github", "42")].refresh_token == "refresh-1"

    async def test_same_uid_different_provider_is_a_different_user(self, store):
        github = await oauth_v2(store, "a", None, make_profile(provider="github"))
        google = await oauth_v2(store, "b", None, make_profile(provider="google"))

        assert github.user.guid != google.user.guid
        assert len(store.identities) == 2


class TestConcurrentLogin:
    """Concurrent first logins of one provider account end with a single linked user."""

    async def test_concurrent_first_logins_share_one_user(self, store):
        results = await asyncio.gather(
            *[oauth_v2(store, f"access-{i}", None, make_profile()) for i in range(5)]
        )

        assert all(result.ok for result in results)
        assert len({result.user.guid for result in results}) == 1
        assert len(store.identities) == 1
        assert len(store.users) == 1
        assert store.identities[("github", "42")].user_guid == results[0].user.guid


class TestLoginFailure:
    """Any failing store operation is returned as an error outcome, never raised."""

    @pytest.mark.parametrize(
        "operation", ["find_or_create", "get_user", "save", "create_user", "set_user"]
    )
    async def test_failure_is_returned(self, operation):
        store = FakeIdentityStore(fail_on=operation)

        result = await oauth_v2(store, "access-1", None, make_profile())

        assert not result.ok
        assert result.user is None
        assert isinstance(result.error, RuntimeError)
        assert str(result.error) == f"{operation} failed"

    @pytest.mark.parametrize("operation", ["get_user", "save"])
    async def test_gathered_operations_both_complete(self, operation):
        store = FakeIdentityStore(fail_on=operation)

        await oauth_v2(store, "access-1", None, make_profile())

        assert "get_user" in store.calls
        assert "save" in store.calls
        assert "create_user" not in store.calls

    async def test_failure_is_logged(self, caplog):
        store = FakeIdentityStore(fail_on="save")

        with caplog.at_level("ERROR", logger="social.graze.identity.auth.login"):
            await oauth_v2(store, "access-1", None, make_profile())

        assert "login error" in caplog.text
