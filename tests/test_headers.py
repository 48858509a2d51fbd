"""Tests for provider header building."""

from __future__ import annotations

import base64

import pytest

from timer_relay.core.errors import InvalidCredentialKind
from timer_relay.core.headers import build_headers, uses_data_sources
from timer_relay.core.models import TokenKind


def test_primary_token_uses_bearer_and_version() -> None:
    headers = build_headers(TokenKind.PRIMARY, "secret_abc", "GET", api_version="2025-09-03")

    assert headers == {"Authorization": "Bearer secret_abc", "Notion-Version": "2025-09-03"}


def test_tracking_token_uses_basic_with_api_token_password() -> None:
    headers = build_headers(TokenKind.TRACKING, "tgl123", "GET")

    scheme, encoded = headers["Authorization"].split(" ", 1)
    assert scheme == "Basic"
    assert base64.b64decode(encoded).decode() == "tgl123:api_token"
    assert "Notion-Version" not in headers


@pytest.mark.parametrize("method", ["POST", "PATCH", "PUT", "patch"])
def test_body_methods_get_json_content_type(method: str) -> None:
    headers = build_headers(TokenKind.TRACKING, "tgl123", method)

    assert headers["Content-Type"] == "application/json"


@pytest.mark.parametrize("method", ["GET", "DELETE", "HEAD"])
def test_bodyless_methods_have_no_content_type(method: str) -> None:
    headers = build_headers(TokenKind.PRIMARY, "secret", method)

    assert "Content-Type" not in headers


def test_legacy_token_key_names_are_accepted() -> None:
    assert build_headers("notionToken", "s")["Authorization"] == "Bearer s"
    assert build_headers("togglApiToken", "s")["Authorization"].startswith("Basic ")


@pytest.mark.parametrize("kind", ["githubToken", "", None, 3])
def test_unknown_kind_is_rejected(kind) -> None:
    with pytest.raises(InvalidCredentialKind):
        build_headers(kind, "secret", "GET")


def test_data_sources_revision_flag() -> None:
    assert uses_data_sources("2025-09-03")
    assert uses_data_sources("2026-01-15")
    assert not uses_data_sources("2022-06-28")
