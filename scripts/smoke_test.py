from __future__ import annotations

import argparse
import sys
from urllib.parse import urljoin

import httpx


def parse_args() -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Smoke test for the Google Sign-In API")
    parser.add_argument(
        "--api-url",
        required=True,
        help="Base URL of the deployed API Gateway endpoint",
    )
    parser.add_argument(
        "--id-token",
        help="Optional Google ID token; when given, /login/google is called with it",
    )
    return parser.parse_args()


def _check_health(client: httpx.Client, base_url: str) -> str | None:
    health_url = urljoin(base_url, "health")
    response = client.get(health_url)
    response.raise_for_status()

    payload = response.json()
    if payload.get("status") != "ok":
        msg = f"Unexpected status returned from {health_url}: {payload}"
        raise AssertionError(msg)
    return payload.get("version")


def _check_missing_token_rejected(client: httpx.Client, base_url: str) -> None:
    register_url = urljoin(base_url, "register/google")
    response = client.post(register_url, json={})
    if response.status_code != 400:
        msg = f"Expected 400 from {register_url} without idToken, got {response.status_code}"
        raise AssertionError(msg)


def main() -> int:
    args = parse_args()
    base_url = args.api_url.rstrip("/") + "/"

    with httpx.Client(timeout=10) as client:
        version = _check_health(client, base_url)
        _check_missing_token_rejected(client, base_url)

        if args.id_token:
            response = client.post(urljoin(base_url, "login/google"), json={"idToken": args.id_token})
            print(f"/login/google returned {response.status_code}: {response.text}")

    print(f"Smoke test succeeded against {base_url} (version={version})")
    return 0


if __name__ == "__main__":
    sys.exit(main())
