"""JSON-over-HTTP helper shared by the provider adapters."""

from __future__ import annotations

import json
import logging
from typing import Any
from urllib import error, request

from kql_assist.llm.base import ProviderError

logger = logging.getLogger(__name__)


def post_json(
    endpoint: str,
    body: dict[str, Any],
    *,
    headers: dict[str, str] | None = None,
    timeout: float,
    label: str,
) -> dict[str, Any]:
    """POST ``body`` as JSON and decode a JSON object response."""
    req = request.Request(
        endpoint,
        method="POST",
        data=json.dumps(body).encode("utf-8"),
        headers={"Content-Type": "application/json", **(headers or {})},
    )
    logger.debug("POST %s (timeout=%.1fs)", endpoint, timeout)

    try:
        with request.urlopen(req, timeout=timeout) as response:
            payload = json.loads(response.read().decode("utf-8"))
    except error.HTTPError as exc:
        details = exc.read().decode("utf-8", errors="replace")
        raise ProviderError(
            f"{label} request failed with HTTP {exc.code}: {details}"
        ) from exc
    except error.URLError as exc:
        raise ProviderError(f"{label} request failed: {exc.reason}") from exc
    except TimeoutError as exc:
        raise ProviderError(f"{label} request timed out.") from exc
    except json.JSONDecodeError as exc:
        raise ProviderError(f"{label} response was not valid JSON.") from exc

    if not isinstance(payload, dict):
        raise ProviderError(f"{label} response was not a JSON object.")
    return payload
