from __future__ import annotations

import os

import aws_cdk as cdk

from infra.api_stack import ApiStack


def _parse_allowed_origins(raw):
    if not raw:
        return None
    if isinstance(raw, str):
        if raw.strip() == "*":
            return ["*"]
        return [segment.strip() for segment in raw.split(",") if segment.strip()]
    if isinstance(raw, list):
        return raw
    raise ValueError("allowed_origins context must be a string or list")


def _context_or_env(app: cdk.App, context_key: str, env_key: str) -> str | None:
    return app.node.try_get_context(context_key) or os.environ.get(env_key)


def _resolve_env() -> cdk.Environment | None:
    account = os.environ.get("AWS_ACCOUNT_ID") or os.environ.get("CDK_DEFAULT_ACCOUNT")
    region = (
        os.environ.get("AWS_REGION")
        or os.environ.get("CDK_DEFAULT_REGION")
        or os.environ.get("AWS_DEFAULT_REGION")
    )
    if account and region:
        return cdk.Environment(account=account, region=region)
    # environment-agnostic synth
    return None


app = cdk.App()

stage = _context_or_env(app, "stage", "STACK_STAGE") or "dev"
google_client_id = _context_or_env(app, "google_client_id", "GOOGLE_CLIENT_ID")
if not google_client_id:
    raise ValueError(
        "Google client id must be provided via CDK context 'google_client_id' "
        "or GOOGLE_CLIENT_ID environment variable."
    )

ApiStack(
    app,
    f"GoogleSignInStack-{stage}",
    stage=stage,
    google_client_id=google_client_id,
    allowed_origins=_parse_allowed_origins(app.node.try_get_context("allowed_origins")),
    env=_resolve_env(),
)

app.synth()
