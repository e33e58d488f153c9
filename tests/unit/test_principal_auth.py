"""Tests for ID token verification and the principal built from its claims."""

from unittest.mock import patch

import pytest

from journalshare.application.dtos.principal import Principal
from journalshare.domain.exceptions import AuthenticationException
from journalshare.infrastructure.firebase.auth import verify_id_token
from journalshare.middleware.request_id import _sanitize_request_id


def test_principal_from_claims() -> None:
    principal = Principal.from_claims(
        {
            "sub": "U1",
            "user_id": "U1",
            "email": " Alice@X.com ",
            "email_verified": True,
            "name": "Alice",
            "picture": "https://example.com/a.png",
        }
    )
    assert principal == Principal(
        uid="U1",
        email="alice@x.com",
        email_verified=True,
        display_name="Alice",
        photo_url="https://example.com/a.png",
    )
    assert principal.access_entry("viewer").to_dict() == {
        "role": "viewer",
        "email": "alice@x.com",
        "displayName": "Alice",
        "photoURL": "https://example.com/a.png",
    }


def test_principal_without_email_is_unverified() -> None:
    principal = Principal.from_claims({"sub": "U9"})
    assert principal.uid == "U9"
    assert principal.email is None
    assert principal.email_verified is False


def test_verify_id_token_passes_project_audience() -> None:
    with patch(
        "journalshare.infrastructure.firebase.auth.id_token.verify_firebase_token",
        return_value={"sub": "U1"},
    ) as verify:
        assert verify_id_token("tok", "proj") == {"sub": "U1"}
    assert verify.call_args.kwargs == {"audience": "proj"}


def test_verify_id_token_rejects_invalid_token() -> None:
    with patch(
        "journalshare.infrastructure.firebase.auth.id_token.verify_firebase_token",
        side_effect=ValueError("Token expired"),
    ):
        with pytest.raises(AuthenticationException):
            verify_id_token("tok", "proj")


@pytest.mark.parametrize(
    ("raw", "kept"),
    [("req-123_A", True), ("bad id\n", False), ("x" * 65, False), (None, False)],
)
def test_request_id_sanitization(raw, kept) -> None:
    result = _sanitize_request_id(raw)
    assert (result == raw) is kept
    assert result
