"""
Helpers for generating signed internal auth headers in API tests.
"""
import hashlib
import hmac
import time

from app.config import settings


def build_internal_auth_headers(method: str, path_with_query: str, user_id: str) -> dict[str, str]:
    """
    Build signed headers accepted by get_current_user.
    """
    secret = settings.internal_auth_secret.strip()
    if not secret:
        raise RuntimeError("INTERNAL_AUTH_SECRET is required for API tests.")

    timestamp = str(int(time.time()))
    payload = "\n".join([method.upper(), path_with_query, user_id, timestamp])
    signature = hmac.new(
        secret.encode("utf-8"),
        payload.encode("utf-8"),
        hashlib.sha256,
    ).hexdigest()

    return {
        "X-Ledger-User-Id": user_id,
        "X-Ledger-Timestamp": timestamp,
        "X-Ledger-Signature": signature,
    }
