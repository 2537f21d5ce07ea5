from __future__ import annotations

import logging
from datetime import datetime

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy import select, update
from sqlalchemy.orm import Session

from app.auth.tokens import (
    as_utc,
    hash_magic_token,
    issue_access_token,
    magic_link_expiry,
    new_magic_token,
    now_utc,
)
from app.config import settings
from app.db import get_db
from app.models.auth_magic_link import AuthMagicLink
from app.models.user import User
from app.schemas.auth import AccessTokenOut, RedeemIn, RequestLinkIn, RequestLinkOut
from app.ratelimit import rate_limit

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/auth", tags=["auth"])

request_link_limit = rate_limit(
    "auth:request_link",
    limit_per_window=settings.rate_limit_auth_request_link_per_min,
    window_seconds=60,
)
redeem_limit = rate_limit(
    "auth:redeem",
    limit_per_window=settings.rate_limit_auth_redeem_per_min,
    window_seconds=60,
)

def _get_or_register(db: Session, email: str, name: str | None) -> User:
    user = db.scalar(select(User).where(User.email == email))
    if user is not None:
        return user

    # first magic link doubles as sign-up
    user = User(email=email, name=name)
    db.add(user)
    db.flush()
    logger.info(f"Registered new user {user.id}")
    return user

def _redeem_failure(db: Session, token_hash: str, now: datetime) -> HTTPException:
    row = db.get(AuthMagicLink, token_hash)
    if row is not None and row.used_at is not None:
        return HTTPException(status_code=400, detail="token already used")
    if row is not None and as_utc(row.expires_at) <= now:
        return HTTPException(status_code=400, detail="token expired")
    return HTTPException(status_code=400, detail="invalid token")

@router.post("/request-link", response_model=RequestLinkOut)
def request_link(
    payload: RequestLinkIn,
    db: Session = Depends(get_db),
    _: None = Depends(request_link_limit),
) -> RequestLinkOut:
    user = _get_or_register(db, payload.email.lower().strip(), payload.name)

    token = new_magic_token()
    db.add(
        AuthMagicLink(
            token_hash=hash_magic_token(token),
            user_id=user.id,
            expires_at=magic_link_expiry(),
        )
    )
    db.commit()

    # only hand the raw token back outside prod
    if settings.app_env == "prod":
        return RequestLinkOut(link=f"{settings.base_url}/auth/redeem?token={token}")
    return RequestLinkOut(token=token)

@router.post("/redeem", response_model=AccessTokenOut)
def redeem(
    payload: RedeemIn,
    db: Session = Depends(get_db),
    _: None = Depends(redeem_limit),
) -> AccessTokenOut:
    token_hash = hash_magic_token(payload.token.strip())
    now = now_utc()

    # single statement so two concurrent redeems can't both win
    claimed = (
        update(AuthMagicLink)
        .where(
            AuthMagicLink.token_hash == token_hash,
            AuthMagicLink.used_at.is_(None),
            AuthMagicLink.expires_at > now,
        )
        .values(used_at=now)
        .returning(AuthMagicLink.user_id)
        .execution_options(synchronize_session=False)
    )
    user_id = db.scalar(claimed)
    if user_id is None:
        raise _redeem_failure(db, token_hash, now)

    user = db.get(User, user_id)
    if user is None:
        raise HTTPException(status_code=400, detail="invalid token")

    db.commit()
    logger.debug(f"Issued access token for user {user.id}")
    return AccessTokenOut(
        access_token=issue_access_token(user.id),
        expires_in=settings.jwt_expires_minutes * 60,
    )
