"""Google authentication helpers."""

from __future__ import annotations

import logging
from dataclasses import dataclass

from google.auth import exceptions as google_exceptions
from google.auth.transport import requests
from google.oauth2 import id_token as google_id_token

from lambdas.common.config import google_client_id
from lambdas.common.errors import AuthenticationError, InvalidToken

logger = logging.getLogger(__name__)

GOOGLE_TOKEN_ISSUERS = frozenset({"accounts.google.com", "https://accounts.google.com"})

_REQUEST = requests.Request()


@dataclass(frozen=True)
class IdentityClaim:
    """Identity extracted from a verified Google ID token."""

    subject: str
    email: str


def verify_id_token(token: str, audience: str | None = None) -> IdentityClaim:
    """Verify a Google ID token and return the identity it asserts.

    The audience defaults to ``GOOGLE_CLIENT_ID`` and is resolved before any
    request to Google is made. The issuer is checked against
    ``GOOGLE_TOKEN_ISSUERS`` independently of google-auth's own checks.
    """

    if audience is None:
        audience = google_client_id()

    if not token:
        logger.info("Rejected empty Google ID token")
        raise InvalidToken("Missing token")

    try:
        claims = google_id_token.verify_oauth2_token(token, _REQUEST, audience)
    except google_exceptions.TransportError as exc:
        logger.exception("Unable to reach Google to verify ID token")
        raise AuthenticationError("Google certificate fetch failed") from exc
    except (ValueError, google_exceptions.GoogleAuthError) as exc:
        # google-auth raises ValueError for verification failures
        logger.info("Failed to verify Google ID token: %s", exc)
        raise InvalidToken(str(exc)) from exc

    if not claims:
        logger.info("No payload found in Google ID token")
        raise InvalidToken("No payload found in Google ID token")

    subject = claims.get("sub")
    email = claims.get("email")
    if not subject or not email:
        logger.info(
            "Google ID token missing required claims: sub=%s email=%s",
            bool(subject),
            bool(email),
        )
        raise InvalidToken("Missing required fields in Google ID token payload")

    issuer = claims.get("iss")
    if issuer not in GOOGLE_TOKEN_ISSUERS:
        logger.warning("Rejected Google ID token from untrusted issuer %s", issuer)
        raise InvalidToken("Invalid token issuer")

    return IdentityClaim(subject=subject, email=email)
