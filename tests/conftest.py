"""Shared fixtures: an in-memory marketplace backend behind httpx.MockTransport."""

import asyncio
import json

import httpx
import pytest

from onboarding.api_client import MarketplaceClient
from onboarding.provisioning import ProvisioningCoordinator

VALID_CODE = "123456"

ACCOUNT = {
    "name": "Ada Obi",
    "email": "ada@example.com",
    "password": "secret123",
    "confirm_password": "secret123",
    "phone": "+2348012345678",
    "country": "NG",
    "city": "Lagos",
    "terms_accepted": True,
}

SHOP = {
    "name": "Ada Couture",
    "bio": "Handmade ready-to-wear pieces from Lagos.",
    "address": {"city": "Lagos"},
    "shop_type": "both",
}

BANK = {
    "bank_name": "First Bank",
    "account_name": "Ada Obi",
    "account_number": "0123456789",
}


class FakeBackend:
    """
    Routes requests by path (without the /api prefix).

    A route holds a list of responses; each call consumes the first one
    until a single response is left, which then repeats. A response is a
    (status, body) tuple, an exception to raise, or a callable taking the
    request body and returning either.
    """

    def __init__(self):
        self.routes: dict[str, list] = {}
        self.calls: list[tuple[str, str, dict | None]] = []
        self.headers: list[httpx.Headers] = []
        self._gates: dict[str, asyncio.Event] = {}

    def on(self, path: str, *responses) -> "FakeBackend":
        self.routes[path] = list(responses)
        return self

    def hold(self, path: str) -> asyncio.Event:
        """Park requests to `path` until the returned event is set."""
        gate = asyncio.Event()
        self._gates[path] = gate
        return gate

    def paths(self) -> list[str]:
        return [path for _, path, _ in self.calls]

    def count(self, path: str) -> int:
        return self.paths().count(path)

    async def handler(self, request: httpx.Request) -> httpx.Response:
        path = request.url.path.removeprefix("/api")
        body = json.loads(request.content) if request.content else None
        self.calls.append((request.method, path, body))
        self.headers.append(request.headers)

        gate = self._gates.get(path)
        if gate is not None:
            await gate.wait()

        responses = self.routes.get(path)
        if not responses:
            return httpx.Response(404, json={"success": False, "message": "Not found"})
        response = responses[0] if len(responses) == 1 else responses.pop(0)
        if callable(response):
            response = response(body)
        if isinstance(response, Exception):
            raise response
        status, payload = response
        return httpx.Response(status, json=payload)


def _check_code(body: dict) -> tuple[int, dict]:
    if body.get("otp") == VALID_CODE:
        return 201, {"success": True, "seller": {"id": "seller-1"}, "token": "tok-1"}
    return 400, {"success": False, "message": "Incorrect OTP. Please try again."}


def _check_reset_code(body: dict) -> tuple[int, dict]:
    if body.get("otp") == VALID_CODE:
        return 200, {"success": True, "message": "OTP verified"}
    return 400, {"success": False, "message": "Invalid OTP"}


@pytest.fixture
def backend() -> FakeBackend:
    return (
        FakeBackend()
        .on("/seller-registration", (200, {"success": True, "message": "OTP sent", "email": ACCOUNT["email"]}))
        .on("/verify-seller-otp", _check_code)
        .on("/create-shop", (201, {"success": True, "shop": {"id": "shop-1"}}))
        .on("/setup-payment", (200, {"success": True, "message": "Payment details saved"}))
        .on("/skip-payment-setup", (200, {"success": True}))
        .on("/seller/seller-1/payment-status", (200, {"success": True, "data": {"isPaymentSetup": True}}))
        .on("/forgot-password-user", (200, {"success": True, "message": "OTP sent"}))
        .on("/verify-forgot-password-otp", _check_reset_code)
        .on("/reset-password-user", (200, {"success": True, "message": "Password reset successfully"}))
    )


@pytest.fixture
def coordinator(backend: FakeBackend) -> ProvisioningCoordinator:
    client = MarketplaceClient(base_url="http://test/api", transport=httpx.MockTransport(backend.handler))
    return ProvisioningCoordinator(client)


async def wait_until(predicate, rounds: int = 200) -> None:
    """Yield to the loop until predicate() holds."""
    for _ in range(rounds):
        if predicate():
            return
        await asyncio.sleep(0)
    raise AssertionError("condition never became true")


async def type_code(target, code: str):
    """Enter a code digit by digit; returns the outcome of the last entry."""
    outcome = None
    for index, digit in enumerate(code):
        outcome = await target.enter_digit(index, digit)
    return outcome
