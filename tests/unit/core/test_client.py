"""Tests for greader.core.client."""

from __future__ import annotations

import asyncio
import json
from datetime import UTC, datetime

import pytest

from greader.auth.session import CookieSession, OAuthBearer
from greader.core.client import (
    ReaderClient,
    credentials_valid,
    session_valid,
    stream_contents_path,
)
from greader.core.config import Settings
from greader.core.exceptions import (
    ConfigurationError,
    CredentialError,
    OperationFailure,
    RequestFailure,
    ResponseFormatError,
    ValidationError,
)
from greader.executor.batch import BatchOrchestrator
from greader.models.feed import Feed, FeedEntry

FEED_A = "feed/http://a.com/rss"
FEED_B = "feed/http://b.com/rss"
STREAM_TIME = datetime(2011, 3, 13, tzinfo=UTC)

UNREAD = {
    "max": 1000,
    "unreadcounts": [
        {"id": FEED_A, "count": 3},
        {"id": "user/-/state/com.google/reading-list", "count": 3},
    ],
}
SUBSCRIPTIONS = {
    "subscriptions": [
        {"id": FEED_A, "title": "Alpha"},
        {"id": FEED_B, "title": "Beta"},
        {"id": "user/-/label/News", "title": "News"},
    ]
}
STREAM = {
    "items": [
        {
            "id": "tag:google.com,2005:reader/item/1",
            "published": 1300000000,
            "title": "First",
            "alternate": [{"href": "http://a.com/1"}],
            "summary": {"content": "<p>one</p>"},
        },
        {"id": "tag:google.com,2005:reader/item/2", "published": 1300000100},
    ]
}


@pytest.fixture
def client(fake, settings):
    return ReaderClient.with_cookies("SID1", "AUTH1", settings, client=fake.client())


class TestGetFeeds:
    """Subscription list joined with unread counts."""

    async def test_join(self, fake, client) -> None:
        fake.get("unread-count", json.dumps(UNREAD))
        fake.get("subscription/list", json.dumps(SUBSCRIPTIONS))

        feeds = await client.get_feeds()

        by_id = {f.id: f for f in feeds}
        assert set(by_id) == {FEED_A, FEED_B}
        assert (by_id[FEED_A].title, by_id[FEED_A].unread_count) == ("Alpha", 3)
        assert (by_id[FEED_B].title, by_id[FEED_B].unread_count) == ("Beta", 0)

    async def test_requests_carry_session(self, fake, client) -> None:
        fake.get("unread-count", json.dumps(UNREAD))
        fake.get("subscription/list", json.dumps(SUBSCRIPTIONS))

        await client.get_feeds()

        assert [r.url.path for r in fake.requests] == [
            "/reader/api/0/unread-count",
            "/reader/api/0/subscription/list",
        ]
        for request in fake.requests:
            assert request.method == "GET"
            assert request.url.params["output"] == "json"
            assert request.headers["Authorization"] == "GoogleLogin auth=AUTH1"
            assert request.headers["Cookie"] == "SID=SID1"

    async def test_distinct_ids(self, fake, client) -> None:
        doubled = {"subscriptions": SUBSCRIPTIONS["subscriptions"] * 2}
        fake.get("unread-count", json.dumps(UNREAD))
        fake.get("subscription/list", json.dumps(doubled))

        feeds = await client.get_feeds()

        assert len(feeds) == 2

    async def test_malformed_unread_counts(self, fake, client) -> None:
        fake.get("unread-count", "<html>")
        fake.get("subscription/list", json.dumps(SUBSCRIPTIONS))

        with pytest.raises(ResponseFormatError) as exc_info:
            await client.get_feeds()

        assert exc_info.value.path == "api/0/unread-count?output=json"
        assert exc_info.value.has_body is False

    async def test_malformed_subscriptions(self, fake, client) -> None:
        fake.get("unread-count", json.dumps(UNREAD))
        fake.get("subscription/list", "garbage")

        with pytest.raises(ResponseFormatError) as exc_info:
            await client.get_feeds()

        assert exc_info.value.path == "api/0/subscription/list?output=json"

    async def test_transport_failure(self, fake, client) -> None:
        fake.get("unread-count", (502, "Bad Gateway"))

        with pytest.raises(RequestFailure) as exc_info:
            await client.get_feeds()

        assert exc_info.value.status_code == 502

    async def test_malformed_subscription_id(self, fake, client) -> None:
        fake.get("unread-count", json.dumps({"unreadcounts": []}))
        fake.get("subscription/list", json.dumps({"subscriptions": [{"id": "feed/12"}]}))

        with pytest.raises(ResponseFormatError) as exc_info:
            await client.get_feeds()

        assert exc_info.value.path == "api/0/subscription/list?output=json"
        assert isinstance(exc_info.value.cause, ValidationError)


class TestGetEntries:
    """Entry fetching paths and mapping."""

    def test_path_bounded_count(self) -> None:
        assert stream_contents_path(FEED_A, 5, ck=7) == "api/0/stream/contents/feed/http://a.com/rss?n=5&ck=7"

    @pytest.mark.parametrize("count", [0, -1, 1001, 1500])
    def test_path_unread_filter(self, count: int) -> None:
        assert stream_contents_path(FEED_A, count, ck=7) == (
            "api/0/stream/contents/feed/http://a.com/rss"
            "?xt=user/-/state/com.google/read&n=1000&ck=7"
        )

    @pytest.mark.parametrize("count", [1, 1000])
    def test_path_bounds_inclusive(self, count: int) -> None:
        assert f"?n={count}&" in stream_contents_path(FEED_A, count, ck=7)

    def test_path_escapes_feed_query(self) -> None:
        path = stream_contents_path("feed/http://a.com/rss?tag=x&y=1", 5, ck=7)

        assert path == "api/0/stream/contents/feed/http://a.com/rss%3Ftag%3Dx%26y%3D1?n=5&ck=7"

    async def test_bounded_count_request(self, fake, client) -> None:
        fake.get("stream/contents", json.dumps(STREAM))

        await client.get_entries(Feed(id=FEED_A), count=5)

        params = fake.requests[0].url.params
        assert params["n"] == "5"
        assert "xt" not in params
        assert int(params["ck"]) > 0

    @pytest.mark.parametrize("count", [0, 1500])
    async def test_unread_request(self, fake, client, count: int) -> None:
        fake.get("stream/contents", json.dumps(STREAM))

        await client.get_entries(FEED_A, count=count)

        params = fake.requests[0].url.params
        assert params["xt"] == "user/-/state/com.google/read"
        assert params["n"] == "1000"

    async def test_entries_mapped(self, fake, client) -> None:
        fake.get("stream/contents", json.dumps(STREAM))

        entries = await client.get_entries(FEED_A)

        assert [e.id for e in entries] == [
            "tag:google.com,2005:reader/item/1",
            "tag:google.com,2005:reader/item/2",
        ]
        first, second = entries
        assert first.feed_id == FEED_A
        assert (first.title, first.link, first.content) == ("First", "http://a.com/1", "<p>one</p>")
        assert (second.title, second.link, second.content) == (None, None, None)

    async def test_invalid_feed_id(self, fake, client) -> None:
        with pytest.raises(ValidationError):
            await client.get_entries("http://a.com/rss")
        assert fake.requests == []

    async def test_malformed_body(self, fake, client) -> None:
        fake.get("stream/contents", "Service Unavailable")

        with pytest.raises(ResponseFormatError) as exc_info:
            await client.get_entries(FEED_A)

        assert exc_info.value.path.startswith("api/0/stream/contents/feed/")


class TestMarkAsRead:
    """Mutating calls with the edit token."""

    async def test_feed(self, fake, client) -> None:
        fake.get("api/0/token", "tok-1\n")
        fake.post("mark-all-as-read", "OK")

        await client.mark_as_read(Feed(id=FEED_A, title="Alpha"))

        token_request, mark_request = fake.requests
        assert token_request.url.path == "/reader/api/0/token"
        assert mark_request.content == f"s={FEED_A}&t=Alpha&T=tok-1".encode()
        assert mark_request.headers["Cookie"] == "SID=SID1"

    async def test_entry(self, fake, client) -> None:
        fake.get("api/0/token", "tok-1")
        fake.post("edit-tag", "OK")
        entry = FeedEntry(id="tag:1", published=STREAM_TIME, feed_id=FEED_A)

        await client.mark_as_read(entry)

        assert fake.calls("edit-tag")[0].content == (
            b"i=tag:1&a=user/-/state/com.google/read&ac=edit&T=tok-1"
        )

    async def test_entry_id(self, fake, client) -> None:
        fake.get("api/0/token", "tok-1")
        fake.post("edit-tag", "OK")

        await client.mark_as_read("tag:2")

        assert fake.form(fake.calls("edit-tag")[0])["i"] == "tag:2"

    @pytest.mark.parametrize("body", ["Error", "", "ok", "OK\n"])
    async def test_not_ok_feed(self, fake, client, body: str) -> None:
        fake.get("api/0/token", "tok-1")
        fake.post("mark-all-as-read", body)

        with pytest.raises(OperationFailure) as exc_info:
            await client.mark_as_read(Feed(id=FEED_A))

        assert exc_info.value.target_id == FEED_A
        assert FEED_A in str(exc_info.value)

    async def test_not_ok_entry(self, fake, client) -> None:
        fake.get("api/0/token", "tok-1")
        fake.post("edit-tag", "Error")

        with pytest.raises(OperationFailure) as exc_info:
            await client.mark_as_read("tag:9")

        assert exc_info.value.target_id == "tag:9"

    async def test_token_reused(self, fake, client) -> None:
        fake.get("api/0/token", "tok-1")
        fake.post("edit-tag", "OK")

        await asyncio.gather(*[client.mark_as_read(f"tag:{i}") for i in range(5)])

        assert len(fake.calls("api/0/token")) == 1
        assert len(fake.calls("edit-tag")) == 5

    async def test_token_failure_propagates(self, fake, client) -> None:
        fake.get("api/0/token", (500, "down"))

        with pytest.raises(RequestFailure):
            await client.mark_as_read("tag:1")
        assert fake.calls("edit-tag") == []



class TestPasswordClient:
    """Ordering: login, then edit token, then the mutating call."""

    async def test_login_before_token(self, fake, settings) -> None:
        fake.post("accounts/ClientLogin", "SID=s\nAuth=a\n")
        fake.get("api/0/token", "tok")
        fake.post("edit-tag", "OK")
        client = ReaderClient.with_password("alice", "pw", settings, client=fake.client())

        await client.mark_as_read("tag:1")

        assert [r.url.path for r in fake.requests] == [
            "/accounts/ClientLogin",
            "/reader/api/0/token",
            "/reader/api/0/edit-tag",
        ]
        assert fake.requests[1].headers["Authorization"] == "GoogleLogin auth=a"

    async def test_bad_credentials(self, fake, settings) -> None:
        fake.post("accounts/ClientLogin", (403, "Error=BadAuthentication"))
        client = ReaderClient.with_password("alice", "wrong", settings, client=fake.client())

        with pytest.raises(CredentialError):
            await client.get_feeds()
        assert len(fake.requests) == 1

    async def test_bad_credentials_batch_logs_in_once(self, fake, settings) -> None:
        fake.post("accounts/ClientLogin", (403, "Error=BadAuthentication"))
        client = ReaderClient.with_password("alice", "wrong", settings, client=fake.client())
        feeds = [Feed(id=f"feed/http://site{i}.com/rss") for i in range(10)]

        with pytest.raises(CredentialError):
            await BatchOrchestrator(client).get_entries(feeds)

        assert len(fake.calls("ClientLogin")) == 1
        assert fake.calls("stream/contents") == []

    async def test_oauth_bearer(self, fake, settings) -> None:
        fake.post("o/oauth2/token", '{"access_token": "ya29"}')
        fake.get("unread-count", json.dumps(UNREAD))
        fake.get("subscription/list", json.dumps(SUBSCRIPTIONS))
        client = ReaderClient.with_oauth("id", "secret", "refresh", settings, client=fake.client())

        await client.get_feeds()

        assert fake.calls("unread-count")[0].headers["Authorization"] == "Bearer ya29"
        assert "Cookie" not in fake.calls("unread-count")[0].headers


class TestConstruction:
    """Strategy selection and lifecycle."""

    def test_from_settings_oauth(self) -> None:
        s = Settings(_env_file=None, refresh_token="r", client_id="i", client_secret="c", username="u", password="p")

        assert isinstance(ReaderClient.from_settings(s).session, OAuthBearer)

    def test_from_settings_oauth_incomplete(self) -> None:
        with pytest.raises(ConfigurationError):
            ReaderClient.from_settings(Settings(_env_file=None, refresh_token="r"))

    def test_from_settings_cookies(self) -> None:
        s = Settings(_env_file=None, sid="s", auth="a", username="u", password="p")
        client = ReaderClient.from_settings(s)

        assert isinstance(client.session, CookieSession)
        assert client.session.sid == "s"

    def test_from_settings_password(self) -> None:
        client = ReaderClient.from_settings(Settings(_env_file=None, username="u", password="p"))

        assert isinstance(client.session, CookieSession)
        assert client.session.sid is None

    def test_from_settings_nothing(self) -> None:
        with pytest.raises(ConfigurationError):
            ReaderClient.from_settings(Settings(_env_file=None))

    def test_independent_instances(self, settings) -> None:
        a = ReaderClient.with_cookies("s1", "a1", settings)
        b = ReaderClient.with_cookies("s2", "a2", settings)

        assert a.session is not b.session
        assert a.edit_token is not b.edit_token
        assert (a.session.sid, b.session.sid) == ("s1", "s2")

    async def test_context_manager_closes(self, settings) -> None:
        async with ReaderClient.with_cookies("s", "a", settings) as client:
            http = await client._executor._ensure_client()

        assert http.is_closed is True


class TestValidityHelpers:
    """credentials_valid / session_valid."""

    async def test_credentials_valid(self, fake, settings) -> None:
        fake.post("accounts/ClientLogin", "SID=s\nAuth=a\n")

        assert await credentials_valid("u", "p", settings, client=fake.client()) is True

    async def test_credentials_invalid(self, fake, settings) -> None:
        fake.post("accounts/ClientLogin", (403, "Error=BadAuthentication"))

        assert await credentials_valid("u", "p", settings, client=fake.client()) is False

    async def test_session_valid(self, fake, settings) -> None:
        fake.get("unread-count", json.dumps(UNREAD))

        assert await session_valid("s", "a", settings, client=fake.client()) is True

    async def test_session_invalid(self, fake, settings) -> None:
        fake.get("unread-count", (401, "Unauthorized"))

        assert await session_valid("s", "a", settings, client=fake.client()) is False
