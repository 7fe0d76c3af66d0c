"""Fake directory service for HTTP-level tests."""

import pytest
from aiohttp import web

from paylink.config.constants import INTERNAL_KEY_HEADER


INTERNAL_KEY = "test-internal-key-0123456789"
REGISTERED_ADDRESS = "0x2222222222222222222222222222222222222222"


class FakeDirectory:
    """In-memory directory service speaking the real HTTP contract."""

    def __init__(self) -> None:
        self.requests: list[tuple[str, str | None, str | None]] = []
        self.notifications: dict[tuple[str, int], dict] = {}
        self.deliveries = 0
        self.reject_notifications = False

    def _record(self, request: web.Request) -> None:
        self.requests.append(
            (request.path, request.query.get("q"), request.headers.get(INTERNAL_KEY_HEADER))
        )

    def _user(self) -> dict:
        return {
            "id": 7,
            "address": REGISTERED_ADDRESS.upper().replace("0X", "0x"),
            "username": "alice",
            "internalId": "DP123456",
            "email": "alice@example.com",
        }

    async def lookup(self, request: web.Request) -> web.Response:
        self._record(request)
        query = request.query.get("q", "").lstrip("@").lower()
        if query == "broken":
            return web.json_response({"success": False, "message": "boom"}, status=500)
        if query in ("alice", "dp123456", "alice@example.com"):
            return web.json_response({"success": True, "data": self._user()})
        return web.json_response({"success": False, "message": "User not found"}, status=404)

    async def by_address(self, request: web.Request) -> web.Response:
        self._record(request)
        if request.match_info["address"].lower() == REGISTERED_ADDRESS:
            return web.json_response({"success": True, "data": self._user()})
        return web.json_response({"success": False, "message": "User not found"}, status=404)

    async def notify(self, request: web.Request) -> web.Response:
        self._record(request)
        if request.headers.get(INTERNAL_KEY_HEADER) != INTERNAL_KEY:
            return web.json_response({"success": False, "message": "Unauthorized."}, status=401)
        if self.reject_notifications:
            return web.json_response({"success": False, "message": "Inbox unavailable."}, status=503)

        body = await request.json()
        key = (body["txHash"], body["logIndex"])
        created = key not in self.notifications
        # Upsert keyed by (txHash, logIndex)
        self.notifications[key] = body
        self.deliveries += 1
        return web.json_response({"success": True, "message": "OK", "data": {"created": created}})

    async def health(self, request: web.Request) -> web.Response:
        return web.json_response({"status": "ok"})

    def make_app(self) -> web.Application:
        app = web.Application()
        app.router.add_get("/api/users/lookup", self.lookup)
        app.router.add_get("/api/users/{address}", self.by_address)
        app.router.add_post("/api/notifications/payment", self.notify)
        app.router.add_get("/health", self.health)
        return app


@pytest.fixture
def fake_directory():
    return FakeDirectory()


@pytest.fixture
def internal_key():
    return INTERNAL_KEY
