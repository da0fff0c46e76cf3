"""
PhotoMemo Client Tests
======================

What we test:
    ✅ ClientSession persistence: init, handle_authed, clear, corrupt files
    ✅ PhotoMemoClient: bearer header, error mapping, login stores the session
    ✅ A full register → login → post → logout run against the ASGI app
"""

import json

import httpx
import pytest
from httpx import ASGITransport

from photomemo.client import ApiError, ClientSession, PhotoMemoClient


class TestClientSession:

    def test_init_without_file_is_logged_out(self, tmp_path):
        session = ClientSession(tmp_path / "session.json").init()
        assert session.user is None
        assert session.token is None
        assert not session.is_authed

    def test_handle_authed_persists(self, tmp_path):
        path = tmp_path / "nested" / "session.json"
        ClientSession(path).handle_authed({"email": "a@b.co"}, "tok")

        restored = ClientSession(path).init()

        assert restored.is_authed
        assert restored.token == "tok"
        assert restored.user == {"email": "a@b.co"}

    def test_clear_forgets_everything(self, tmp_path):
        path = tmp_path / "session.json"
        session = ClientSession(path)
        session.handle_authed({"email": "a@b.co"}, "tok")

        session.clear()

        assert not session.is_authed
        assert not path.exists()
        assert not ClientSession(path).init().is_authed

    def test_clear_without_file(self, tmp_path):
        ClientSession(tmp_path / "session.json").clear()

    def test_corrupt_file_is_logged_out(self, tmp_path):
        path = tmp_path / "session.json"
        path.write_text("{not json")
        assert not ClientSession(path).init().is_authed

    def test_wrong_shapes_are_dropped(self, tmp_path):
        path = tmp_path / "session.json"
        path.write_text(json.dumps({"user": "nope", "token": 5}))
        session = ClientSession(path).init()
        assert session.user is None
        assert session.token is None


class TestPhotoMemoClient:

    @pytest.mark.asyncio
    async def test_sends_bearer_when_authed(self, tmp_path):
        seen = {}

        def handler(request: httpx.Request) -> httpx.Response:
            seen["auth"] = request.headers.get("Authorization")
            return httpx.Response(200, json={"user": {"email": "a@b.co"}})

        session = ClientSession(tmp_path / "s.json")
        session.handle_authed({"email": "a@b.co"}, "tok")
        async with PhotoMemoClient("http://api", session, transport=httpx.MockTransport(handler)) as api:
            user = await api.me()

        assert user == {"email": "a@b.co"}
        assert seen["auth"] == "Bearer tok"

    @pytest.mark.asyncio
    async def test_no_header_when_logged_out(self, tmp_path):
        seen = {}

        def handler(request: httpx.Request) -> httpx.Response:
            seen["auth"] = request.headers.get("Authorization")
            return httpx.Response(200, json=[])

        session = ClientSession(tmp_path / "s.json")
        async with PhotoMemoClient("http://api", session, transport=httpx.MockTransport(handler)) as api:
            assert await api.list_posts() == []

        assert seen["auth"] is None

    @pytest.mark.asyncio
    async def test_error_body_becomes_api_error(self, tmp_path):
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(
                401,
                json={"error": "invalid_credentials", "message": "Invalid email or password."},
            )

        session = ClientSession(tmp_path / "s.json")
        async with PhotoMemoClient("http://api", session, transport=httpx.MockTransport(handler)) as api:
            with pytest.raises(ApiError) as exc_info:
                await api.login("a@b.co", "bad")

        assert exc_info.value.status_code == 401
        assert exc_info.value.error == "invalid_credentials"
        assert exc_info.value.message == "Invalid email or password."
        assert not session.is_authed

    @pytest.mark.asyncio
    async def test_non_json_error(self, tmp_path):
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(502, text="Bad Gateway")

        session = ClientSession(tmp_path / "s.json")
        async with PhotoMemoClient("http://api", session, transport=httpx.MockTransport(handler)) as api:
            with pytest.raises(ApiError) as exc_info:
                await api.list_posts()

        assert exc_info.value.status_code == 502
        assert exc_info.value.message == "Bad Gateway"


class TestClientAgainstApp:

    @pytest.mark.asyncio
    async def test_full_session(self, test_client, tmp_path):
        from photomemo.main import app

        session = ClientSession(tmp_path / "session.json").init()
        transport = ASGITransport(app=app, raise_app_exceptions=False)

        async with PhotoMemoClient("http://test", session, transport=transport) as api:
            await api.register("carol@example.com", "pw123456", display_name="Carol")
            user = await api.login("carol@example.com", "pw123456")
            assert user["email"] == "carol@example.com"
            assert ClientSession(tmp_path / "session.json").init().is_authed

            created = await api.create_post("Hello", "World", file_url=["uploads/x.png"])
            mine = await api.my_posts()
            assert [p["id"] for p in mine] == [created["id"]]
            assert mine[0]["fileUrl"] == ["https://cdn.test/uploads/x.png"]

            updated = await api.update_post(created["id"], title="Hi")
            assert updated["title"] == "Hi"

            assert (await api.delete_post(created["id"]))["ok"] is True

            api.logout()
            with pytest.raises(ApiError) as exc_info:
                await api.me()
            assert exc_info.value.status_code == 401
