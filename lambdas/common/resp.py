"""HTTP request and response helpers for Lambda proxy integrations."""

from __future__ import annotations

import base64
import binascii
import json
import logging
from typing import Any, Mapping

from lambdas.common.errors import ServiceError

logger = logging.getLogger(__name__)

DEFAULT_HEADERS = {
    "Content-Type": "application/json",
    "Access-Control-Allow-Origin": "*",
    "Access-Control-Allow-Methods": "GET, POST, PUT, DELETE, OPTIONS",
    "Access-Control-Allow-Headers": "Content-Type, Authorization",
}


def json_response(
    payload: Mapping[str, Any] | None,
    *,
    status_code: int = 200,
    headers: Mapping[str, str] | None = None,
) -> dict[str, Any]:
    """Return a JSON response compatible with API Gateway Lambda proxy."""

    body = "" if payload is None else json.dumps(payload)

    merged_headers = dict(DEFAULT_HEADERS)
    if headers:
        merged_headers.update(headers)

    return {
        "statusCode": status_code,
        "headers": merged_headers,
        "body": body,
    }


def error_response(message: str, *, status_code: int = 400) -> dict[str, Any]:
    """Return a standardized error response."""

    return json_response({"error": message}, status_code=status_code)


def service_error_response(exc: ServiceError) -> dict[str, Any]:
    """Map a workflow error to the caller-safe response for its class."""

    return error_response(exc.public_message, status_code=exc.status_code)


def event_body(event: Mapping[str, Any]) -> str | bytes | None:
    """Return the raw request body, decoding it when API Gateway base64-encoded it."""

    body = event.get("body")
    if body and event.get("isBase64Encoded"):
        try:
            return base64.b64decode(body, validate=True)
        except binascii.Error:
            logger.info("Ignoring request body that is not valid base64")
            return None
    return body
