import base64
import hashlib
import hmac
import json

from tournament_api.tokens import Invalid, InvalidReason, Valid, issue_token, verify_token

SECRET = "unit-test-secret"
CLAIMS = {"_id": "65f0c0ffee0000000000abcd", "username": "alice", "role": "admin", "isActive": True}
NOW = 1_700_000_000.0


def _signed(payload: bytes, secret: str = SECRET) -> str:
    signature = hmac.new(secret.encode(), payload, hashlib.sha256).hexdigest()
    return base64.b64encode(payload).decode() + "." + signature


def test_round_trip_returns_claims_with_expiry_in_milliseconds():
    token = issue_token(CLAIMS, SECRET, lifetime_seconds=60, now=NOW)
    result = verify_token(token, SECRET, now=NOW + 1)

    assert isinstance(result, Valid)
    assert result.claims.user_id == CLAIMS["_id"]
    assert result.claims.username == "alice"
    assert result.claims.role == "admin"
    assert result.claims.is_active is True
    assert result.claims.exp == int(NOW * 1000) + 60_000


def test_token_is_base64_json_dot_hex_signature():
    token = issue_token(CLAIMS, SECRET, now=NOW)
    encoded, signature = token.split(".", 1)

    payload = base64.b64decode(encoded)
    assert json.loads(payload)["username"] == "alice"
    assert signature == hmac.new(SECRET.encode(), payload, hashlib.sha256).hexdigest()


def test_default_lifetime_is_24_hours():
    token = issue_token(CLAIMS, SECRET, now=NOW)

    assert isinstance(verify_token(token, SECRET, now=NOW + 86_399), Valid)
    assert verify_token(token, SECRET, now=NOW + 86_401) == Invalid(InvalidReason.EXPIRED)


def test_wrong_secret_is_bad_signature():
    token = issue_token(CLAIMS, SECRET, now=NOW)
    assert verify_token(token, "another-secret", now=NOW) == Invalid(InvalidReason.BAD_SIGNATURE)


def test_tampered_payload_is_bad_signature():
    token = issue_token(CLAIMS, SECRET, now=NOW)
    _, signature = token.split(".", 1)
    forged = dict(CLAIMS, role="superuser", exp=int(NOW * 1000) + 60_000)
    encoded = base64.b64encode(json.dumps(forged).encode()).decode()

    assert verify_token(f"{encoded}.{signature}", SECRET, now=NOW) == Invalid(InvalidReason.BAD_SIGNATURE)


def test_malformed_tokens():
    malformed = Invalid(InvalidReason.MALFORMED)
    assert verify_token(None, SECRET) == malformed
    assert verify_token("", SECRET) == malformed
    assert verify_token("no-separator", SECRET) == malformed
    assert verify_token(".abc", SECRET) == malformed
    assert verify_token("!!!not-base64!!!.abc", SECRET) == malformed


def test_signed_but_unusable_payloads_are_malformed():
    malformed = Invalid(InvalidReason.MALFORMED)
    assert verify_token(_signed(b"not json"), SECRET) == malformed
    assert verify_token(_signed(b"[1, 2, 3]"), SECRET) == malformed
    assert verify_token(_signed(json.dumps({"username": "bob"}).encode()), SECRET) == malformed


def test_signature_splits_on_first_separator():
    token = issue_token(CLAIMS, SECRET, now=NOW)
    assert verify_token(token + ".extra", SECRET, now=NOW) == Invalid(InvalidReason.BAD_SIGNATURE)
