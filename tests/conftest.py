from __future__ import annotations

import json
from typing import Any, Callable

import pytest
import requests
import requests.adapters

from app import create_app
from config import Settings
from upstream import DataProviderClient, RecaptchaClient

RGS_ENDPOINT = "https://rgs.example/exec"
VERIFY_URL = "https://captcha.example/siteverify"
PUBLIC_KEY = "FRONTEND_KEY"

Handler = Callable[[requests.PreparedRequest], Any]


class FakeAdapter(requests.adapters.BaseAdapter):
    """
    Transport adapter that answers from a handler instead of the network.

    The handler returns (status, json_body), (status, raw_bytes) or raises.
    Every prepared request is recorded.
    """

    def __init__(self, handler: Handler) -> None:
        super().__init__()
        self.handler = handler
        self.requests: list[requests.PreparedRequest] = []

    def send(self, request, **kwargs):  # type: ignore[override]
        self.requests.append(request)
        status, body = self.handler(request)

        response = requests.Response()
        response.status_code = status
        response._content = body if isinstance(body, bytes) else json.dumps(body).encode()
        response.headers["Content-Type"] = "application/json"
        response.url = request.url
        response.request = request
        return response

    def close(self) -> None:
        pass


def fake_session(handler: Handler) -> tuple[requests.Session, FakeAdapter]:
    adapter = FakeAdapter(handler)
    session = requests.Session()
    session.mount("https://", adapter)
    session.mount("http://", adapter)
    return session, adapter


def make_settings(**overrides: Any) -> Settings:
    values: dict[str, Any] = {
        "rgs_endpoint": RGS_ENDPOINT,
        "rgs_secret": "rgs-secret",
        "public_key": PUBLIC_KEY,
        "recaptcha_secret": "captcha-secret",
        "recaptcha_verify_url": VERIFY_URL,
        "allowed_origins": "*",
    }
    values.update(overrides)
    return Settings(_env_file=None, **values)


@pytest.fixture
def make_client():
    """
    Build a Flask test client whose upstream calls go to `handler`.

    Returns the test client and the adapter that recorded the outbound requests.
    """

    def _make(handler: Handler | None = None, **overrides: Any):
        def unexpected(request: requests.PreparedRequest) -> Any:
            raise AssertionError(f"unexpected upstream call: {request.method} {request.url}")

        settings = make_settings(**overrides)
        session, adapter = fake_session(handler or unexpected)
        app = create_app(
            settings,
            data_client=DataProviderClient(
                settings.rgs_endpoint, settings.rgs_secret, session=session
            ),
            captcha_client=RecaptchaClient(
                settings.recaptcha_verify_url, settings.recaptcha_secret, session=session
            ),
        )
        app.testing = True
        return app.test_client(), adapter

    return _make
