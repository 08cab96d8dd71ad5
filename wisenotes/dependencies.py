"""
WiseNotes API — Route Dependencies
===================================

What:  FastAPI dependencies shared by the notebook and note routers.
Why:   Caller resolution must run before every operation, and routes must
       never see a user id that did not come from verified claims.

Dependency chain:
    Authorization: Bearer <jwt>
        → get_caller_claims()   PyJWT signature/expiry check, returns the payload
        → get_caller_id()       IdentityResolver picks the user id claim
        → route handler         passes caller_id to the service

Token issuance and account management belong to the identity provider.
This module only verifies what the provider signed.
"""

import logging
from typing import Any, Dict, Optional

import jwt
from fastapi import Depends
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from wisenotes.config import settings
from wisenotes.exceptions import UnauthenticatedError
from wisenotes.services.identity import IdentityResolver, identity_resolver
from wisenotes.services.note_service import NoteService, note_service
from wisenotes.services.notebook_service import NotebookService, notebook_service

logger = logging.getLogger(__name__)

# auto_error=False: a missing header reaches get_caller_claims as None and is
# reported through UnauthenticatedError like every other auth failure
bearer_scheme = HTTPBearer(auto_error=False)


def get_caller_claims(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
) -> Dict[str, Any]:
    """
    Verifies the bearer token and returns its claims.

    Raises:
        UnauthenticatedError: no token, verification key unset, bad signature,
            expired token, wrong audience or malformed token
    """
    if credentials is None or not credentials.credentials:
        raise UnauthenticatedError(context={"reason": "missing_token"})

    if not settings.jwt_secret_key:
        logger.error("JWT_SECRET_KEY is not configured; rejecting request")
        raise UnauthenticatedError(context={"reason": "verifier_not_configured"})

    try:
        return jwt.decode(
            credentials.credentials,
            settings.jwt_secret_key,
            algorithms=[settings.jwt_algorithm],
            audience=settings.jwt_audience,
            options={"verify_aud": settings.jwt_audience is not None},
        )
    except jwt.PyJWTError as e:
        logger.info("Bearer token rejected: %s", type(e).__name__)
        raise UnauthenticatedError(context={"reason": type(e).__name__}) from e


def get_identity_resolver() -> IdentityResolver:
    return identity_resolver


def get_caller_id(
    claims: Dict[str, Any] = Depends(get_caller_claims),
    resolver: IdentityResolver = Depends(get_identity_resolver),
) -> str:
    return resolver.resolve_caller_id(claims)


def get_notebook_service() -> NotebookService:
    return notebook_service


def get_note_service() -> NoteService:
    return note_service
