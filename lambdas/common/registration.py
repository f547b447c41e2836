"""Register and look up users from a Google ID token."""

from __future__ import annotations

import logging
from typing import Any, Callable

from pydantic import ValidationError as PydanticValidationError

from lambdas.common.errors import (
    INTERNAL_ERROR_MESSAGE,
    ConflictError,
    ServiceError,
    UserNotFound,
    ValidationError,
)
from lambdas.common.google import IdentityClaim, verify_id_token
from lambdas.common.models import GoogleTokenRequest, UserResponse, UserSummary
from lambdas.common.resp import error_response, json_response, service_error_response
from lambdas.common.users import UserDirectory, UserRecord, get_user_directory

logger = logging.getLogger(__name__)

REGISTERED_MESSAGE = "User registered successfully"
LOGGED_IN_MESSAGE = "User logged in successfully"

Verifier = Callable[[str], IdentityClaim]


def parse_id_token(body: str | bytes | None) -> str:
    """Return the idToken carried by a JSON request body."""

    if not body:
        raise ValidationError("Request body is empty")
    try:
        request = GoogleTokenRequest.model_validate_json(body)
    except PydanticValidationError as exc:
        logger.info(
            "Rejected request body: %s",
            exc.errors(include_url=False, include_input=False),
        )
        raise ValidationError("idToken is required") from exc
    return request.id_token


def _user_response(message: str, record: UserRecord, *, status_code: int) -> dict[str, Any]:
    payload = UserResponse(
        message=message,
        user=UserSummary(
            user_id=record.user_id,
            email=record.email,
            created_at=record.created_at,
        ),
    )
    return json_response(payload.model_dump(by_alias=True), status_code=status_code)


def _run(workflow: Callable[[], dict[str, Any]], name: str) -> dict[str, Any]:
    try:
        return workflow()
    except ServiceError as exc:
        if exc.status_code >= 500:
            logger.error("%s failed: %s: %s", name, type(exc).__name__, exc)
        return service_error_response(exc)
    except Exception:
        logger.exception("Unexpected error in %s", name)
        return error_response(INTERNAL_ERROR_MESSAGE, status_code=500)


def register_google_user(
    body: str | bytes | None,
    *,
    verifier: Verifier | None = None,
    directory: UserDirectory | None = None,
) -> dict[str, Any]:
    """Create a user for the Google identity in ``body``.

    Returns a Lambda proxy response: 201 with the new user, 400 when the body
    carries no idToken, 409 when the Google subject is already registered and
    500 for every verification, configuration or storage failure.
    """

    def workflow() -> dict[str, Any]:
        token = parse_id_token(body)
        claim = (verifier or verify_id_token)(token)

        users = directory if directory is not None else get_user_directory()
        if users.exists(claim.subject):
            logger.info("Google subject %s is already registered", claim.subject)
            raise ConflictError(claim.subject)

        record = users.create(claim)
        return _user_response(REGISTERED_MESSAGE, record, status_code=201)

    return _run(workflow, "register_google_user")


def login_google_user(
    body: str | bytes | None,
    *,
    verifier: Verifier | None = None,
    directory: UserDirectory | None = None,
) -> dict[str, Any]:
    """Report the registered user for the Google identity in ``body``."""

    def workflow() -> dict[str, Any]:
        token = parse_id_token(body)
        claim = (verifier or verify_id_token)(token)

        users = directory if directory is not None else get_user_directory()
        record = users.find_by_subject(claim.subject)
        if record is None:
            logger.info("No user registered for Google subject %s", claim.subject)
            raise UserNotFound(claim.subject)

        return _user_response(LOGGED_IN_MESSAGE, record, status_code=200)

    return _run(workflow, "login_google_user")
