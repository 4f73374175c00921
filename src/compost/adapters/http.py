"""HTTP helpers shared by the platform adapters."""

from __future__ import annotations

from datetime import UTC, datetime

import httpx

from compost.utils.errors import PlatformAPIError

# Sorts last when a platform omits or garbles a timestamp
EPOCH = datetime.min.replace(tzinfo=UTC)


def raise_for_status(response: httpx.Response, platform: str) -> None:
    """Raise PlatformAPIError for a non-2xx response.

    The platform's own error message is included when the body is JSON.
    """
    if response.is_success:
        return

    detail = response.reason_phrase
    try:
        payload = response.json()
    except ValueError:
        payload = None

    if isinstance(payload, dict):
        message = payload.get("message") or payload.get("error")
        if message:
            detail = str(message)

    raise PlatformAPIError(
        f"{platform} API request {response.request.method} {response.request.url.path} "
        f"failed ({response.status_code}): {detail}",
        status_code=response.status_code,
    )


def parse_timestamp(timestamp_str: str | None) -> datetime:
    """Parse an ISO 8601 timestamp from a platform API.

    Args:
        timestamp_str: ISO format timestamp string.

    Returns:
        Timezone aware datetime, EPOCH if the value cannot be parsed.
    """
    if not timestamp_str:
        return EPOCH

    try:
        if timestamp_str.endswith("Z"):
            timestamp_str = timestamp_str[:-1] + "+00:00"
        parsed = datetime.fromisoformat(timestamp_str)
    except ValueError:
        return EPOCH

    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=UTC)
    return parsed
