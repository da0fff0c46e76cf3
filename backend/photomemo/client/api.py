"""
HTTP client for the PhotoMemo REST API.

Every request carries `Authorization: Bearer <token>` while the attached
ClientSession holds a token. A successful login stores the returned user and
token in the session; logout clears it. Non-2xx responses raise ApiError with
the server's `message`.

    session = ClientSession().init()
    async with PhotoMemoClient("http://localhost:8000", session) as api:
        if not session.is_authed:
            await api.login("me@example.com", "secret")
        posts = await api.my_posts()
"""

from typing import Any, Dict, List, Optional

import httpx

from photomemo.client.session import ClientSession


class ApiError(Exception):

    def __init__(self, status_code: int, message: str, error: Optional[str] = None):
        self.status_code = status_code
        self.message = message
        self.error = error
        super().__init__(f"{status_code}: {message}")


class PhotoMemoClient:

    def __init__(
        self,
        base_url: str = "http://localhost:8000",
        session: Optional[ClientSession] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
        timeout: float = 10.0,
    ):
        self.session = session if session is not None else ClientSession()
        self._http = httpx.AsyncClient(base_url=base_url, transport=transport, timeout=timeout)

    async def __aenter__(self) -> "PhotoMemoClient":
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        await self._http.aclose()

    # ── Auth ──────────────────────────────────────────────────────────────

    async def register(
        self,
        email: str,
        password: str,
        display_name: Optional[str] = None,
        role: Optional[str] = None,
    ) -> Dict[str, Any]:
        body: Dict[str, Any] = {"email": email, "password": password}
        if display_name is not None:
            body["displayName"] = display_name
        if role is not None:
            body["role"] = role
        data = await self._request("POST", "/api/auth/register", json=body)
        return data["user"]

    async def login(self, email: str, password: str) -> Dict[str, Any]:
        data = await self._request("POST", "/api/auth/login", json={"email": email, "password": password})
        self.session.handle_authed(data["user"], data["token"])
        return data["user"]

    async def me(self) -> Dict[str, Any]:
        data = await self._request("GET", "/api/auth/me")
        return data["user"]

    def logout(self) -> None:
        # The login response also set the `token` cookie on this client
        self._http.cookies.clear()
        self.session.clear()

    # ── Posts ─────────────────────────────────────────────────────────────

    async def create_post(
        self,
        title: str,
        content: str,
        file_url: Optional[List[str]] = None,
    ) -> Dict[str, Any]:
        body: Dict[str, Any] = {"title": title, "content": content}
        if file_url is not None:
            body["fileUrl"] = file_url
        return await self._request("POST", "/api/posts", json=body)

    async def list_posts(self) -> List[Dict[str, Any]]:
        return await self._request("GET", "/api/posts")

    async def my_posts(self) -> List[Dict[str, Any]]:
        return await self._request("GET", "/api/posts/my")

    async def get_post(self, post_id: str) -> Dict[str, Any]:
        return await self._request("GET", f"/api/posts/{post_id}")

    async def update_post(self, post_id: str, **fields: Any) -> Dict[str, Any]:
        """Send only the given fields; snake_case names are accepted by the server."""
        return await self._request("PUT", f"/api/posts/{post_id}", json=fields)

    async def delete_post(self, post_id: str) -> Dict[str, Any]:
        return await self._request("DELETE", f"/api/posts/{post_id}")

    async def upload(self, filename: str, content: bytes, content_type: str) -> Dict[str, Any]:
        files = {"file": (filename, content, content_type)}
        return await self._request("POST", "/api/uploads", files=files)

    # ── Internals ─────────────────────────────────────────────────────────

    def _headers(self) -> Dict[str, str]:
        if self.session.token:
            return {"Authorization": f"Bearer {self.session.token}"}
        return {}

    async def _request(self, method: str, path: str, **kwargs: Any) -> Any:
        response = await self._http.request(method, path, headers=self._headers(), **kwargs)
        if response.is_success:
            return response.json()

        try:
            payload = response.json()
        except ValueError:
            payload = {}
        if not isinstance(payload, dict):
            payload = {}
        raise ApiError(
            status_code=response.status_code,
            message=payload.get("message") or response.reason_phrase,
            error=payload.get("error"),
        )
