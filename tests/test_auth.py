"""
Tests for role permissions and token verification
"""
import pytest
from unittest.mock import Mock, patch
from fastapi import HTTPException
from jose import JWTError
from app.auth.jwt_verifier import JWTVerifier
from app.auth.middleware import JWTPayload, check_permission
from app.auth.permissions_manager import PermissionsManager


def test_default_permissions_file():
    manager = PermissionsManager()
    assert manager.get_permissions_for_roles(["doctor"]) == ["survey:export", "survey:read"]
    assert manager.get_permissions_for_roles(["patient"]) == []


def test_missing_permissions_file(tmp_path):
    manager = PermissionsManager(str(tmp_path / "missing.yml"))
    assert manager.get_permissions_for_roles(["doctor"]) == []


def test_custom_permissions_file(tmp_path):
    path = tmp_path / "permissions.yml"
    path.write_text("roles:\n  receptionist:\n    - survey:read\n")
    manager = PermissionsManager(str(path))
    assert manager.get_permissions_for_roles(["receptionist", "doctor"]) == ["survey:read"]


def test_check_permission():
    payload = JWTPayload(sub="user-1", roles=["doctor"], permissions=["survey:read"])
    check_permission(payload, "survey:read")

    with pytest.raises(HTTPException) as exc_info:
        check_permission(payload, "survey:export")
    assert exc_info.value.status_code == 403


def test_jwks_refetched_once_for_unknown_signing_key():
    verifier = JWTVerifier("http://keycloak", "clinic")
    old_keys, new_keys = {"keys": [{"kid": "old"}]}, {"keys": [{"kid": "new"}]}
    responses = [Mock(json=Mock(return_value=old_keys)), Mock(json=Mock(return_value=new_keys))]

    def decode(token, jwks):
        if jwks is old_keys:
            raise JWTError("Signature verification failed")
        return {"sub": "user-1"}

    with patch("app.auth.jwt_verifier.requests.get", side_effect=responses) as get, \
            patch("app.auth.jwt_verifier.jwt.get_unverified_header", return_value={"kid": "new"}), \
            patch.object(verifier, "_decode", side_effect=decode):
        assert verifier.verify_and_decode("token") == {"sub": "user-1"}

    assert get.call_count == 2
    assert get.call_args.kwargs["timeout"] == verifier.timeout


def test_expired_token_with_known_key_does_not_refetch_jwks():
    verifier = JWTVerifier("http://keycloak", "clinic")
    keys = {"keys": [{"kid": "current"}]}

    with patch("app.auth.jwt_verifier.requests.get", return_value=Mock(json=Mock(return_value=keys))) as get, \
            patch("app.auth.jwt_verifier.jwt.get_unverified_header", return_value={"kid": "current"}), \
            patch.object(verifier, "_decode", side_effect=JWTError("Signature has expired.")):
        with pytest.raises(JWTError):
            verifier.verify_and_decode("token")

    assert get.call_count == 1


def test_invalid_token_still_rejected_after_refresh():
    verifier = JWTVerifier("http://keycloak", "clinic")

    with patch("app.auth.jwt_verifier.requests.get", return_value=Mock(json=Mock(return_value={"keys": []}))) as get, \
            patch("app.auth.jwt_verifier.jwt.get_unverified_header", return_value={"kid": "rotated"}), \
            patch.object(verifier, "_decode", side_effect=JWTError("Signature verification failed")):
        with pytest.raises(JWTError):
            verifier.verify_and_decode("token")

    assert get.call_count == 2
