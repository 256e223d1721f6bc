"""Tests for the Flask application factory and request authentication boundary."""

from pathlib import Path
import sys
from types import SimpleNamespace

import pytest
from flask import Response

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:  # pragma: no cover
    sys.path.insert(0, str(ROOT))

import app as app_module  # noqa: E402
from slack_approval_bot import config, security  # noqa: E402

TIMESTAMP = "1700000000"


class DummyHandler:
    calls = []

    def __init__(self, bolt_app):
        self.bolt_app = bolt_app

    def handle(self, request):
        DummyHandler.calls.append(request.get_data(as_text=True))
        return Response("", status=200)


@pytest.fixture(autouse=True)
def patch_environment(monkeypatch):
    DummyHandler.calls = []
    monkeypatch.setattr(app_module, "SlackRequestHandler", DummyHandler)
    monkeypatch.setattr(security, "time", SimpleNamespace(time=lambda: int(TIMESTAMP)))
    config.get_settings.cache_clear()
    yield
    config.get_settings.cache_clear()


def _settings(secret: str = "secret") -> config.AppSettings:
    return config.AppSettings(bot_token="token", signing_secret=secret)


def _signed_headers(secret: str, body: str, timestamp: str = TIMESTAMP) -> dict[str, str]:
    signature = security.compute_signature(secret, timestamp, body)
    return {
        security.SLACK_SIGNATURE_HEADER: signature,
        security.SLACK_TIMESTAMP_HEADER: timestamp,
    }


@pytest.mark.parametrize("path", app_module.SLACK_ROUTES)
def test_signed_request_reaches_handler(path):
    flask_app = app_module.create_app(_settings())
    body = "payload=%7B%22type%22%3A%22block_actions%22%7D"

    response = flask_app.test_client().post(
        path,
        data=body,
        content_type="application/x-www-form-urlencoded",
        headers=_signed_headers("secret", body),
    )

    assert response.status_code == 200
    assert DummyHandler.calls == [body]


def test_invalid_signature_returns_unauthorised():
    flask_app = app_module.create_app(_settings())

    response = flask_app.test_client().post(
        "/slack/events",
        data="{}",
        content_type="application/json",
        headers={
            security.SLACK_SIGNATURE_HEADER: "v0=invalid",
            security.SLACK_TIMESTAMP_HEADER: TIMESTAMP,
        },
    )

    assert response.status_code == 401
    assert response.get_json() == {"error": "invalid_signature"}
    assert DummyHandler.calls == []


def test_stale_and_missing_headers_look_identical_to_bad_signature():
    flask_app = app_module.create_app(_settings())
    client = flask_app.test_client()
    body = "{}"

    stale = client.post(
        "/slack/events",
        data=body,
        content_type="application/json",
        headers=_signed_headers("secret", body, timestamp="100"),
    )
    missing = client.post("/slack/events", data=body, content_type="application/json")
    bad = client.post(
        "/slack/events",
        data=body,
        content_type="application/json",
        headers=_signed_headers("wrong", body),
    )

    assert stale.status_code == missing.status_code == bad.status_code == 401
    assert stale.get_data() == missing.get_data() == bad.get_data()
    assert DummyHandler.calls == []


def test_oversized_timestamp_is_rejected_like_any_other_forgery():
    flask_app = app_module.create_app(_settings())
    body = "{}"

    response = flask_app.test_client().post(
        "/slack/diagnostic",
        data=body,
        content_type="application/json",
        headers={
            security.SLACK_SIGNATURE_HEADER: "v0=" + "0" * 64,
            security.SLACK_TIMESTAMP_HEADER: "1" * 5000,
        },
    )

    assert response.status_code == 401
    assert response.get_json() == {"error": "invalid_signature"}


def test_signature_is_checked_against_raw_body():
    flask_app = app_module.create_app(_settings())
    raw_body = "text=hello+world&user_id=U1&token=abc"

    response = flask_app.test_client().post(
        "/slack/commands",
        data=raw_body,
        content_type="application/x-www-form-urlencoded",
        headers=_signed_headers("secret", raw_body),
    )
    assert response.status_code == 200

    reordered = "user_id=U1&text=hello+world&token=abc"
    response = flask_app.test_client().post(
        "/slack/commands",
        data=reordered,
        content_type="application/x-www-form-urlencoded",
        headers=_signed_headers("secret", raw_body),
    )
    assert response.status_code == 401


def test_missing_secret_denies_all_traffic():
    flask_app = app_module.create_app(_settings(secret=""))
    client = flask_app.test_client()
    body = "{}"

    signed = client.post(
        "/slack/events",
        data=body,
        content_type="application/json",
        headers=_signed_headers("", body),
    )
    health = client.get("/healthz")

    assert signed.status_code == 500
    assert signed.get_json() == {"error": "server_misconfigured"}
    assert health.status_code == 500
    assert DummyHandler.calls == []


def test_get_requests_do_not_need_signature():
    flask_app = app_module.create_app(_settings())

    response = flask_app.test_client().get("/")

    assert response.status_code == 200
    assert response.get_data(as_text=True) == app_module.HEALTH_TEXT


def test_diagnostic_endpoint_requires_signature():
    flask_app = app_module.create_app(_settings())
    client = flask_app.test_client()
    body = "command=%2Fdiagnostic"

    unsigned = client.post("/slack/diagnostic", data=body, content_type="application/x-www-form-urlencoded")
    signed = client.post(
        "/slack/diagnostic",
        data=body,
        content_type="application/x-www-form-urlencoded",
        headers=_signed_headers("secret", body),
    )

    assert unsigned.status_code == 401
    assert signed.status_code == 200
    assert signed.get_json() == {"text": "Diagnostic test successful!"}


def test_create_app_reads_environment_when_no_settings_given(monkeypatch):
    monkeypatch.setenv("SLACK_BOT_TOKEN", "token")
    monkeypatch.setenv("SLACK_SIGNING_SECRET", "env-secret")
    flask_app = app_module.create_app()
    body = "{}"

    response = flask_app.test_client().post(
        "/slack/events",
        data=body,
        content_type="application/json",
        headers=_signed_headers("env-secret", body),
    )

    assert response.status_code == 200


def test_unhandled_errors_return_trace_id(monkeypatch):
    class ExplodingHandler(DummyHandler):
        def handle(self, request):
            raise RuntimeError("boom")

    monkeypatch.setattr(app_module, "SlackRequestHandler", ExplodingHandler)
    flask_app = app_module.create_app(_settings())
    body = "{}"

    response = flask_app.test_client().post(
        "/slack/events",
        data=body,
        content_type="application/json",
        headers=_signed_headers("secret", body),
    )

    assert response.status_code == 500
    data = response.get_json()
    assert data["error"] == "internal_server_error"
    assert data["trace_id"]


def test_http_errors_are_not_reported_as_internal_errors():
    flask_app = app_module.create_app(_settings())

    response = flask_app.test_client().get("/slack/events")

    assert response.status_code == 405


def test_healthz_reports_valid_configuration(monkeypatch):
    monkeypatch.setenv("SLACK_BOT_TOKEN", "token")
    monkeypatch.setenv("SLACK_SIGNING_SECRET", "secret")
    flask_app = app_module.create_app(_settings())

    response = flask_app.test_client().get("/healthz")

    assert response.status_code == 200
    data = response.get_json()
    assert data["ok"] is True
    assert data["config"] == "valid"


def test_healthz_reports_invalid_configuration(monkeypatch):
    monkeypatch.delenv("SLACK_BOT_TOKEN", raising=False)
    monkeypatch.setenv("SLACK_SIGNING_SECRET", "secret")
    flask_app = app_module.create_app(_settings())

    response = flask_app.test_client().get("/healthz")

    assert response.status_code == 503
    data = response.get_json()
    assert data["ok"] is False
    assert data["config"] == "invalid"
    assert "SLACK_BOT_TOKEN" in data["config_error"]


def test_version_comes_from_installed_distribution(monkeypatch):
    monkeypatch.setattr(app_module.metadata, "version", lambda name: {"slack-approval-bot": "9.9.9"}[name])

    assert app_module._load_version() == "9.9.9"


def test_version_falls_back_to_version_file(monkeypatch):
    def not_installed(name):
        raise app_module.metadata.PackageNotFoundError(name)

    monkeypatch.setattr(app_module.metadata, "version", not_installed)

    assert app_module._load_version() == (ROOT / "VERSION").read_text(encoding="utf-8").strip()
