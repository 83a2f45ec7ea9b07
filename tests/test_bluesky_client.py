# tests/test_bluesky_client.py
import pytest
import pytest_asyncio
from aiohttp import web
from aiohttp.test_utils import TestServer

from motd_bot.services.bluesky_client import MAX_POST_LENGTH, BlueskyClient, post_url
from motd_bot.services.errors import BlueskyError, ExternalPostError

DID = "did:plc:abc123"


class FakeXRPC:
    """Stands in for a PDS: createSession + createRecord."""

    def __init__(self):
        self.records = []
        self.session_status = 200
        self.omit_uri = False
        self.session_raw = None
        self.app = web.Application()
        self.app.router.add_post("/xrpc/com.atproto.server.createSession", self.create_session)
        self.app.router.add_post("/xrpc/com.atproto.repo.createRecord", self.create_record)

    async def create_session(self, request: web.Request) -> web.Response:
        body = await request.json()
        if self.session_raw is not None:
            return web.Response(text=self.session_raw, content_type="application/json")
        if self.session_status != 200:
            return web.json_response({"error": "InternalServerError"}, status=self.session_status)
        if body["password"] != "app-pass":
            return web.json_response({"error": "AuthenticationRequired"}, status=401)
        return web.json_response({"did": DID, "accessJwt": "jwt-token", "handle": body["identifier"]})

    async def create_record(self, request: web.Request) -> web.Response:
        assert request.headers["Authorization"] == "Bearer jwt-token"
        body = await request.json()
        self.records.append(body)
        if self.omit_uri:
            return web.json_response({"cid": "bafy"})
        return web.json_response({"uri": f"at://{DID}/app.bsky.feed.post/rkey{len(self.records)}", "cid": "bafy"})


@pytest_asyncio.fixture
async def xrpc():
    fake = FakeXRPC()
    server = TestServer(fake.app)
    await server.start_server()
    fake.url = f"http://{server.host}:{server.port}"
    try:
        yield fake
    finally:
        await server.close()


def _client(xrpc, password="app-pass") -> BlueskyClient:
    return BlueskyClient("motd.bsky.social", password, service=xrpc.url, timeout=5)


@pytest.mark.asyncio
async def test_publish_creates_feed_post(xrpc):
    uri = await _client(xrpc).publish("foo")

    assert uri == f"at://{DID}/app.bsky.feed.post/rkey1"
    [record] = xrpc.records
    assert record["repo"] == DID
    assert record["collection"] == "app.bsky.feed.post"
    assert record["record"]["text"] == "foo"
    assert record["record"]["$type"] == "app.bsky.feed.post"
    assert record["record"]["createdAt"].endswith("Z")


@pytest.mark.asyncio
async def test_long_text_is_truncated(xrpc):
    await _client(xrpc).publish("x" * 500)

    text = xrpc.records[0]["record"]["text"]
    assert len(text) == MAX_POST_LENGTH
    assert text.endswith("…")


@pytest.mark.asyncio
async def test_rejected_login_raises(xrpc):
    with pytest.raises(BlueskyError) as excinfo:
        await _client(xrpc, password="wrong").publish("foo")

    assert excinfo.value.status == 401
    assert xrpc.records == []


@pytest.mark.asyncio
async def test_server_error_is_an_external_post_error(xrpc):
    xrpc.session_status = 502

    with pytest.raises(ExternalPostError):
        await _client(xrpc).publish("foo")


@pytest.mark.asyncio
async def test_missing_uri_raises(xrpc):
    xrpc.omit_uri = True

    with pytest.raises(BlueskyError):
        await _client(xrpc).publish("foo")


@pytest.mark.asyncio
async def test_unreachable_service_raises():
    client = BlueskyClient("motd.bsky.social", "app-pass", service="http://127.0.0.1:9", timeout=2)

    with pytest.raises(BlueskyError):
        await client.publish("foo")


@pytest.mark.asyncio
async def test_disabled_client_refuses_to_publish():
    client = BlueskyClient("", "")

    assert client.is_enabled is False
    with pytest.raises(BlueskyError):
        await client.publish("foo")


def test_post_url():
    assert post_url(f"at://{DID}/app.bsky.feed.post/3k2") == f"https://bsky.app/profile/{DID}/post/3k2"
    assert post_url("https://example.com/x") == "https://example.com/x"


@pytest.mark.asyncio
@pytest.mark.parametrize("raw", ["{not json", "[1, 2]", '{"did": "did:plc:abc123"}'])
async def test_malformed_session_response_raises(xrpc, raw):
    xrpc.session_raw = raw

    with pytest.raises(BlueskyError):
        await _client(xrpc).publish("foo")

    assert xrpc.records == []
