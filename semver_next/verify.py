import hashlib
import hmac


def _cteq(a: str, b: str) -> bool:
    return hmac.compare_digest(a, b)


def verify_github(secret: str, header_value: str, body: bytes) -> tuple[bool, str]:
    # GitHub: X-Hub-Signature-256: 'sha256=<hex>'
    if not header_value:
        return False, "missing_header"
    if header_value.startswith("sha256="):
        provided = header_value.split("=", 1)[1].strip()
    else:
        # allow plain hex
        provided = header_value.strip()
    if not provided.isascii():
        return False, "mismatch"
    mac = hmac.new(secret.encode("utf-8"), body, hashlib.sha256).hexdigest()
    ok = _cteq(mac, provided)
    return ok, "ok" if ok else "mismatch"
