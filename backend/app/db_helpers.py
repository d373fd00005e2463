"""
Database helper utilities for handling user context and authentication.

Requests reach this API through the web frontend, which signs every call with
the shared INTERNAL_AUTH_SECRET. The signed user id is trusted as the acting user.
"""
import hashlib
import hmac
import time
from typing import Mapping
from uuid import UUID

from fastapi import Depends, HTTPException, Request, status
from sqlalchemy.orm import Session

from app.config import settings, DEFAULT_INTERNAL_AUTH_MAX_AGE_SECONDS
from app.database import get_db
from app.exceptions import NotFoundError
from app.models import Account, Membership, User

INTERNAL_AUTH_USER_HEADER = "x-ledger-user-id"
INTERNAL_AUTH_TIMESTAMP_HEADER = "x-ledger-timestamp"
INTERNAL_AUTH_SIGNATURE_HEADER = "x-ledger-signature"


def _get_internal_auth_secret() -> str:
    secret = settings.internal_auth_secret.strip()
    if not secret:
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Internal authentication secret is not configured.",
        )
    return secret


def _get_max_signature_age_seconds() -> int:
    if settings.internal_auth_max_age_seconds <= 0:
        return DEFAULT_INTERNAL_AUTH_MAX_AGE_SECONDS
    return settings.internal_auth_max_age_seconds


def build_signature_payload(
    method: str,
    path_with_query: str,
    user_id: str,
    timestamp: str,
) -> str:
    return "\n".join(
        [
            method.upper(),
            path_with_query,
            user_id,
            timestamp,
        ]
    )


def authenticate_internal_request_from_headers(
    method: str,
    path_with_query: str,
    headers: Mapping[str, str],
) -> str:
    user_id = headers.get(INTERNAL_AUTH_USER_HEADER, "").strip()
    timestamp = headers.get(INTERNAL_AUTH_TIMESTAMP_HEADER, "").strip()
    signature = headers.get(INTERNAL_AUTH_SIGNATURE_HEADER, "").strip()

    if not user_id or not timestamp or not signature:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Missing internal authentication headers.",
        )

    try:
        timestamp_int = int(timestamp)
    except ValueError as exc:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid internal authentication timestamp.",
        ) from exc

    now = int(time.time())
    if abs(now - timestamp_int) > _get_max_signature_age_seconds():
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Expired internal authentication signature.",
        )

    secret = _get_internal_auth_secret()
    payload = build_signature_payload(method, path_with_query, user_id, timestamp)
    expected_signature = hmac.new(
        secret.encode("utf-8"),
        payload.encode("utf-8"),
        hashlib.sha256,
    ).hexdigest()

    if not hmac.compare_digest(expected_signature, signature):
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid internal authentication signature.",
        )

    return user_id


def get_current_user(request: Request, db: Session = Depends(get_db)) -> User:
    """
    FastAPI dependency resolving the signed acting user.
    """
    path_with_query = request.url.path
    if request.url.query:
        path_with_query = f"{path_with_query}?{request.url.query}"

    user_id = authenticate_internal_request_from_headers(
        method=request.method,
        path_with_query=path_with_query,
        headers=request.headers,
    )
    user = db.query(User).filter(User.id == user_id).first()
    if not user:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Unknown user.",
        )
    return user


def get_member_account(
    account_id: UUID,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> Account:
    """
    Resolve the path account, visible only to its members.

    Non-members get the same 404 as a missing account.
    """
    account = (
        db.query(Account)
        .join(Membership, Membership.account_id == Account.id)
        .filter(Account.id == account_id, Membership.user_id == user.id)
        .first()
    )
    if not account:
        raise NotFoundError("Account", account_id)
    return account
