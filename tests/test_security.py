from datetime import timedelta

import jwt
import pytest

from utils.errors import AuthenticationError, ExpiredToken, MalformedToken, SigningFailure
from utils.security import ACCESS, REFRESH, CredentialCodec, hash_password, verify_password


def test_password_hash_roundtrip():
    hashed = hash_password("s3cret-pass")
    assert hashed != "s3cret-pass"
    assert verify_password("s3cret-pass", hashed)
    assert not verify_password("wrong", hashed)


def test_verify_password_with_garbage_hash():
    assert verify_password("anything", "not-an-argon2-hash") is False


@pytest.mark.parametrize("kind", [ACCESS, REFRESH])
def test_issue_then_verify_returns_account_id(codec, kind):
    issue = codec.issue_access if kind == ACCESS else codec.issue_refresh
    token = issue("acc-1")
    assert token.ok

    verified = codec.verify(token.value, kind)
    assert verified.ok
    assert verified.value == "acc-1"


def test_claims_carry_type_issuer_and_jti(codec):
    token = codec.issue_refresh("acc-1").value
    claims = jwt.decode(token, "test-refresh-secret", algorithms=["HS256"])
    assert claims["sub"] == "acc-1"
    assert claims["type"] == REFRESH
    assert claims["iss"] == "vidshare-api"
    assert claims["jti"]
    assert claims["exp"] > claims["iat"]


def test_tokens_issued_back_to_back_differ(codec):
    first = codec.issue_refresh("acc-1").value
    second = codec.issue_refresh("acc-1").value
    assert first != second


def test_expired_token(codec):
    expired = CredentialCodec(
        access_secret="test-access-secret",
        refresh_secret="test-refresh-secret",
        access_expires=timedelta(seconds=-30),
        refresh_expires=timedelta(days=1),
    )
    token = expired.issue_access("acc-1").value

    verified = codec.verify(token, ACCESS)
    assert not verified.ok
    assert isinstance(verified.error, ExpiredToken)
    assert isinstance(verified.error, AuthenticationError)


@pytest.mark.parametrize("token", ["", None, "abc.def", "not-a-jwt-at-all"])
def test_malformed_tokens(codec, token):
    verified = codec.verify(token, ACCESS)
    assert not verified.ok
    assert isinstance(verified.error, MalformedToken)


def test_access_token_is_not_a_refresh_token(codec):
    token = codec.issue_access("acc-1").value
    verified = codec.verify(token, REFRESH)
    assert not verified.ok
    assert isinstance(verified.error, MalformedToken)


def test_wrong_type_claim_with_shared_secret():
    shared = CredentialCodec("same", "same", timedelta(minutes=5), timedelta(days=1))
    token = shared.issue_refresh("acc-1").value

    verified = shared.verify(token, ACCESS)
    assert not verified.ok
    assert verified.error.message == "Wrong token type"


def test_token_signed_with_other_secret(codec):
    forged = CredentialCodec("other", "other", timedelta(minutes=5), timedelta(days=1))
    token = forged.issue_access("acc-1").value
    assert isinstance(codec.verify(token, ACCESS).error, MalformedToken)


def test_token_without_subject(codec):
    token = jwt.encode({"exp": 9999999999, "type": ACCESS}, "test-access-secret", algorithm="HS256")
    assert isinstance(codec.verify(token, ACCESS).error, MalformedToken)


def test_signing_failure_is_an_internal_error():
    broken = CredentialCodec("a", "r", timedelta(minutes=5), timedelta(days=1), algorithm="NOPE")
    issued = broken.issue_access("acc-1")
    assert not issued.ok
    assert isinstance(issued.error, SigningFailure)
    assert issued.error.status_code == 500
