"""
WiseNotes API — Identity Resolution
====================================

What:  Turns a verified claim set into the caller's stable user id.
Why:   Services filter every query by this id. Keeping resolution behind a
       narrow interface means the services do not care how the claims were
       obtained (JWT, session cookie, gateway header).
Who:   Called by the route dependency `get_caller_id` before any service call.

Contract:
    resolve_caller_id(claims) -> str
    Raises UnauthenticatedError when no configured claim holds a non-blank
    string. The resolved id is never taken from the request body or path.
"""

import logging
from typing import Any, Mapping, Optional, Protocol, Sequence

from wisenotes.config import NAME_IDENTIFIER_CLAIM, settings
from wisenotes.exceptions import UnauthenticatedError

logger = logging.getLogger(__name__)

DEFAULT_USER_ID_CLAIMS = (
    "sub",
    NAME_IDENTIFIER_CLAIM,
)


class IdentityResolver(Protocol):
    def resolve_caller_id(self, claims: Optional[Mapping[str, Any]]) -> str:
        ...


class ClaimsIdentityResolver:
    """Looks up the first configured claim that carries a usable identifier."""

    def __init__(self, claim_names: Sequence[str] = DEFAULT_USER_ID_CLAIMS):
        self.claim_names = tuple(claim_names)

    def resolve_caller_id(self, claims: Optional[Mapping[str, Any]]) -> str:
        if not claims:
            raise UnauthenticatedError(context={"reason": "no_claims"})

        for name in self.claim_names:
            value = claims.get(name)
            if isinstance(value, str) and value.strip():
                return value

        logger.warning("Verified claims carry no user identifier (tried %s)", ", ".join(self.claim_names))
        raise UnauthenticatedError(context={"reason": "missing_user_claim"})


identity_resolver = ClaimsIdentityResolver(settings.user_id_claims_list)
