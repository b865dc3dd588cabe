"""
Shared HTTP GET helper for the data-source clients.

Each request has a fixed deadline and no retry. Any failure (timeout, HTTP
error, oversized or malformed body) is logged and reported as None so the
caller can degrade that one section to "unavailable".
"""
import json
import logging
import urllib.error
import urllib.parse
import urllib.request
from typing import Any, Dict, Optional

from . import config

logger = logging.getLogger(__name__)


def read_body(response, limit: Optional[int] = None) -> bytes:
    """Response body, refused with ValueError when it is larger than limit bytes."""
    limit = config.MAX_RESPONSE_SIZE if limit is None else limit

    declared = response.headers.get('Content-Length')
    if declared and declared.isdigit() and int(declared) > limit:
        raise ValueError(f"declared body of {declared} bytes exceeds {limit}")

    body = response.read(limit + 1)
    if len(body) > limit:
        raise ValueError(f"body exceeds {limit} bytes")
    return body


def build_url(base_url: str, params: Optional[Dict[str, Any]] = None) -> str:
    """Append query parameters, skipping those set to None."""
    if not params:
        return base_url
    query = urllib.parse.urlencode({key: value for key, value in params.items() if value is not None})
    return f"{base_url}?{query}"


def get_json(
    url: str,
    params: Optional[Dict[str, Any]] = None,
    headers: Optional[Dict[str, str]] = None,
    source: str = 'HTTP',
    timeout: Optional[float] = None,
) -> Optional[Any]:
    """
    GET a URL and decode its JSON body.

    Args:
        url: Endpoint URL
        params: Query parameters (None values are dropped)
        headers: Extra request headers
        source: Label used in log messages
        timeout: Deadline in seconds (defaults to config.API_TIMEOUT_SECONDS)

    Returns:
        Decoded JSON, or None on any failure
    """
    if timeout is None:
        timeout = config.API_TIMEOUT_SECONDS

    request = urllib.request.Request(build_url(url, params), headers=headers or {})
    try:
        with urllib.request.urlopen(request, timeout=timeout) as response:
            return json.loads(read_body(response).decode())
    except urllib.error.HTTPError as e:
        logger.warning(f"{source} API error: {e.code} {e.reason}")
    except (urllib.error.URLError, TimeoutError, OSError) as e:
        logger.warning(f"{source} fetch failed: {e}")
    except ValueError as e:
        # Malformed JSON or oversized body
        logger.warning(f"{source} fetch failed: {e}")
    return None
