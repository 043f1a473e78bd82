"""
Appwrite session tokens.

The browser signs in with Appwrite and sends the account JWT as a bearer
token. The token is unsigned from our point of view, so every request asks
Appwrite who the token belongs to; the account id in the token claims is
never trusted on its own.
"""
import jwt
from dataclasses import dataclass
from fastapi import HTTPException, status
from starlette.concurrency import run_in_threadpool
from appwrite.client import Client
from appwrite.services.account import Account
from appwrite.exception import AppwriteException

from app.core import config
from app.utils import get_logger


log = get_logger(__name__)

UNAUTHORIZED_HEADERS = {"WWW-Authenticate": "Bearer"}


@dataclass(frozen=True)
class AppwriteIdentity:
    account_id: str
    email: str
    name: str | None = None


def read_account_id(token: str) -> str:
    """
    Account id ("userId" claim) of an unexpired Appwrite JWT.

    This is only a local pre-check that rejects malformed and expired tokens
    without a round trip; `verify_appwrite_session` decides who the caller is.
    """
    try:
        payload = jwt.decode(token, options={"verify_signature": False, "verify_exp": True})
    except jwt.ExpiredSignatureError:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Session has expired",
            headers=UNAUTHORIZED_HEADERS,
        )
    except jwt.InvalidTokenError as e:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail=f"Invalid token: {e}",
            headers=UNAUTHORIZED_HEADERS,
        )

    account_id = payload.get("userId")
    if not account_id:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Token has no account",
            headers=UNAUTHORIZED_HEADERS,
        )
    return account_id


def session_account(token: str) -> Account:
    """Account service acting as the token's owner (no API key)."""
    client = Client()
    client.set_endpoint(config.APPWRITE_ENDPOINT)
    client.set_project(config.APPWRITE_PROJECT_ID)
    client.set_jwt(token)
    return Account(client)


async def verify_appwrite_session(token: str) -> AppwriteIdentity:
    """
    Ask Appwrite for the account behind `token` through the (blocking) SDK.

    Forged, revoked and expired sessions are rejected by Appwrite and become
    401s here.
    """
    try:
        account = await run_in_threadpool(session_account(token).get)
    except AppwriteException as e:
        log.warning("Appwrite rejected a session token: %s", e)
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid session",
            headers=UNAUTHORIZED_HEADERS,
        )

    account_id = account.get("$id")
    if not account_id:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Unknown account",
            headers=UNAUTHORIZED_HEADERS,
        )
    return AppwriteIdentity(account_id=account_id, email=account.get("email", ""), name=account.get("name"))
