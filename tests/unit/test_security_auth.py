from __future__ import annotations

import jwt
import pytest

from opentok_server.common import security
from opentok_server.common.errors import SigningError, ValidationError
from opentok_server.common.security import AUTH_HEADER, Credentials, build_auth_header, sign_claims

SECRET = "project-secret-0123456789abcdef0123"


def test_auth_header_carries_project_claims(monkeypatch) -> None:
    monkeypatch.setattr(security, "unix_now", lambda: 1_700_000_000)
    monkeypatch.setattr(security, "new_jti", lambda: "jti-42")

    headers = build_auth_header(Credentials(api_key="12345", api_secret=SECRET))
    token = headers[AUTH_HEADER]

    claims = jwt.decode(
        token,
        SECRET,
        algorithms=["HS256"],
        options={"verify_exp": False, "verify_iat": False},
    )
    assert claims == {
        "iss": "12345",
        "ist": "project",
        "iat": 1_700_000_000,
        "exp": 1_700_000_180,
        "jti": "jti-42",
    }
    assert jwt.get_unverified_header(token)["alg"] == "HS256"


def test_auth_header_ttl_override() -> None:
    headers = build_auth_header(Credentials(api_key="12345", api_secret=SECRET), ttl_sec=30)
    claims = jwt.decode(headers[AUTH_HEADER], SECRET, algorithms=["HS256"])
    assert claims["exp"] - claims["iat"] == 30


def test_each_auth_header_gets_fresh_jti() -> None:
    creds = Credentials(api_key="12345", api_secret=SECRET)
    first = jwt.decode(build_auth_header(creds)[AUTH_HEADER], SECRET, algorithms=["HS256"])
    second = jwt.decode(build_auth_header(creds)[AUTH_HEADER], SECRET, algorithms=["HS256"])
    assert first["jti"] != second["jti"]
    assert isinstance(first["jti"], str)


@pytest.mark.parametrize("api_key,api_secret", [("", SECRET), ("12345", ""), ("  ", SECRET)])
def test_credentials_reject_empty_values(api_key: str, api_secret: str) -> None:
    with pytest.raises(ValidationError):
        Credentials(api_key=api_key, api_secret=api_secret)


def test_credentials_repr_hides_secret() -> None:
    creds = Credentials(api_key="12345", api_secret=SECRET)
    assert SECRET not in repr(creds)
    assert "12345" in repr(creds)


def test_sign_claims_wraps_library_error() -> None:
    with pytest.raises(SigningError) as exc:
        sign_claims({"iss": "12345"}, None)  # type: ignore[arg-type]
    assert exc.value.code == "signing_error"
