import hashlib
import hmac

from semver_next.verify import verify_github


def test_github_signature_ok():
    secret = "topsecret"
    body = b'{"x":1}'
    mac = hmac.new(secret.encode(), body, hashlib.sha256).hexdigest()
    ok, reason = verify_github(secret, f"sha256={mac}", body)
    assert ok and reason == "ok"


def test_plain_hex_accepted():
    body = b"{}"
    mac = hmac.new(b"sec", body, hashlib.sha256).hexdigest()
    ok, reason = verify_github("sec", mac, body)
    assert ok and reason == "ok"


def test_missing_header():
    ok, reason = verify_github("sec", "", b"{}")
    assert not ok and reason == "missing_header"


def test_wrong_secret():
    body = b'{"z":9}'
    mac = hmac.new(b"good", body, hashlib.sha256).hexdigest()
    ok, reason = verify_github("bad", f"sha256={mac}", body)
    assert not ok and reason == "mismatch"


def test_non_ascii_signature():
    ok, reason = verify_github("sec", "sha256=éé", b"{}")
    assert not ok and reason == "mismatch"
