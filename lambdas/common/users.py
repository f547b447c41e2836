"""DynamoDB-backed directory of users registered through Google."""

from __future__ import annotations

import logging
import secrets
import time
import uuid
from dataclasses import dataclass
from datetime import datetime, timezone
from functools import lru_cache
from typing import Any

import boto3
from boto3.dynamodb.conditions import Key
from botocore.exceptions import BotoCoreError, ClientError

from lambdas.common.config import StorageSettings
from lambdas.common.errors import StorageError, SubjectAlreadyLinked
from lambdas.common.google import IdentityClaim

logger = logging.getLogger(__name__)

GOOGLE_PROVIDER = "google"
PROFILE_SK = "PROFILE"
GOOGLE_LINK_SK = "PROVIDER#GOOGLE"


@dataclass(frozen=True)
class UserRecord:
    user_id: str
    google_sub: str
    email: str
    created_at: str
    updated_at: str


def _user_pk(user_id: str) -> str:
    return f"USER#{user_id}"


def _subject_pk(subject: str) -> str:
    return f"GOOGLE_SUB#{subject}"


def _new_user_id() -> str:
    """Return a time-ordered UUID (version 7 layout)."""

    millis = time.time_ns() // 1_000_000
    value = (millis & 0xFFFF_FFFF_FFFF) << 80 | secrets.randbits(80)
    # version 7 in bits 76-79, RFC 4122 variant in bits 62-63
    value = (value & ~(0xF << 76)) | (0x7 << 76)
    value = (value & ~(0x3 << 62)) | (0x2 << 62)
    return str(uuid.UUID(int=value))


def _utc_timestamp() -> str:
    return datetime.now(timezone.utc).isoformat(timespec="milliseconds").replace("+00:00", "Z")


def _record_from_item(item: dict[str, Any]) -> UserRecord:
    created_at = item["createdAt"]
    return UserRecord(
        user_id=item["userId"],
        google_sub=item["googleSub"],
        email=item["email"],
        created_at=created_at,
        updated_at=item.get("updatedAt") or created_at,
    )


def _is_condition_failure(exc: ClientError) -> bool:
    error = exc.response.get("Error", {})
    if error.get("Code") == "ConditionalCheckFailedException":
        return True
    if error.get("Code") != "TransactionCanceledException":
        return False
    reasons = exc.response.get("CancellationReasons") or []
    return any(reason.get("Code") == "ConditionalCheckFailed" for reason in reasons)


class UserDirectory:
    """Looks up and creates users keyed by their Google subject."""

    def __init__(self, table: Any, index_name: str) -> None:
        self._table = table
        self._index_name = index_name

    def find_by_subject(self, subject: str) -> UserRecord | None:
        try:
            response = self._table.query(
                IndexName=self._index_name,
                KeyConditionExpression=Key("googleSub").eq(subject),
            )
        except (BotoCoreError, ClientError) as exc:
            logger.exception("Failed to look up user for Google subject %s", subject)
            raise StorageError("User lookup failed") from exc

        items = response.get("Items") or []
        if not items:
            return None
        if len(items) > 1:
            logger.warning(
                "Found %d users linked to Google subject %s; using the first",
                len(items),
                subject,
            )
        return _record_from_item(items[0])

    def exists(self, subject: str) -> bool:
        return self.find_by_subject(subject) is not None

    def create(self, claim: IdentityClaim) -> UserRecord:
        """Persist a new user for ``claim`` in a single transaction.

        The profile and provider-link items share the user's partition key. A
        guard item keyed by the Google subject is written alongside them under
        ``attribute_not_exists`` so a second registration for the same subject
        fails with :class:`SubjectAlreadyLinked` instead of duplicating the user.
        """

        user_id = _new_user_id()
        now = _utc_timestamp()
        user_pk = _user_pk(user_id)
        subject_pk = _subject_pk(claim.subject)

        profile_item = {
            "PK": user_pk,
            "SK": PROFILE_SK,
            "entityType": "USER",
            "userId": user_id,
            "email": claim.email,
            "createdAt": now,
            "updatedAt": now,
        }
        link_item = {
            "PK": user_pk,
            "SK": GOOGLE_LINK_SK,
            "entityType": "PROVIDER_LINK",
            "provider": GOOGLE_PROVIDER,
            "userId": user_id,
            "googleSub": claim.subject,
            "email": claim.email,
            "createdAt": now,
            "updatedAt": now,
        }
        guard_item = {
            "PK": subject_pk,
            "SK": subject_pk,
            "entityType": "SUBJECT_GUARD",
            "userId": user_id,
            "createdAt": now,
        }

        table_name = self._table.name
        try:
            self._table.meta.client.transact_write_items(
                TransactItems=[
                    {"Put": {"TableName": table_name, "Item": profile_item}},
                    {"Put": {"TableName": table_name, "Item": link_item}},
                    {
                        "Put": {
                            "TableName": table_name,
                            "Item": guard_item,
                            "ConditionExpression": "attribute_not_exists(PK)",
                        }
                    },
                ]
            )
        except ClientError as exc:
            if _is_condition_failure(exc):
                logger.info("Google subject %s is already linked to a user", claim.subject)
                raise SubjectAlreadyLinked(claim.subject) from exc
            logger.exception("Failed to create user for Google subject %s", claim.subject)
            raise StorageError("User creation failed") from exc
        except BotoCoreError as exc:
            logger.exception("Failed to create user for Google subject %s", claim.subject)
            raise StorageError("User creation failed") from exc

        logger.info("Created user %s for Google subject %s", user_id, claim.subject)
        return UserRecord(
            user_id=user_id,
            google_sub=claim.subject,
            email=claim.email,
            created_at=now,
            updated_at=now,
        )


@lru_cache(maxsize=1)
def get_user_directory() -> UserDirectory:
    """Return the process-wide directory, connecting to DynamoDB on first use."""

    settings = StorageSettings.from_env()
    session_kwargs = {"region_name": settings.region} if settings.region else {}
    session = boto3.session.Session(**session_kwargs)
    resource = session.resource("dynamodb", endpoint_url=settings.endpoint_url)
    logger.info(
        "Using users table %s (stage=%s, index=%s)",
        settings.table_name,
        settings.stage,
        settings.gsi_google_sub_name,
    )
    return UserDirectory(resource.Table(settings.table_name), settings.gsi_google_sub_name)
