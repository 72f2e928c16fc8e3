"""
Low-level HTTP client for the PeerDrive relay.

The relay is a small HTTP service on the local network (often an access point
in one of the vehicles) that collects telemetry on /send and hands out the
latest peer reports on /receive. All calls retry on timeout with a growing
timeout; other errors propagate to the caller.
"""
import asyncio
import logging

import aiohttp

from .const import (
    AVAILABILITY_TIMEOUT,
    RELAY_RECEIVE_PATH,
    RELAY_SEND_PATH,
    REQUEST_ATTEMPTS,
    REQUEST_TIMEOUT,
)
from .reports import to_wire

_LOGGER = logging.getLogger(__name__)


class RelayResponseError(Exception):
    """Exception raised when the relay answers with an error."""

    def __init__(self, status: int, body):
        self.status = status
        self.body = body
        super().__init__(f"Relay error (HTTP {status}): {body}")


def normalize_relay_url(relay_url: str) -> str:
    """Add a scheme when the user entered a bare host and drop trailing slashes."""
    url = relay_url.strip()
    if "://" not in url:
        url = f"http://{url}"
    return url.rstrip("/")


async def check_relay_availability(relay_url: str, timeout: int = AVAILABILITY_TIMEOUT) -> bool:
    """
    Check that the relay answers on its receive endpoint.

    Any HTTP answer below 500 counts as reachable; the check only cares that
    something is listening.
    """
    url = normalize_relay_url(relay_url) + RELAY_RECEIVE_PATH
    try:
        timeout_config = aiohttp.ClientTimeout(total=timeout)
        async with aiohttp.ClientSession(timeout=timeout_config) as session:
            async with session.get(url) as response:
                if response.status >= 500:
                    _LOGGER.warning("Relay at %s is not healthy (status %s)", url, response.status)
                    return False
                return True
    except (asyncio.TimeoutError, TimeoutError):
        _LOGGER.warning("Timeout while checking relay at %s", url)
        return False
    except Exception as e:
        _LOGGER.error("Error while checking relay availability at %s: %s", url, e)
        return False


async def make_request(
    method: str,
    url: str,
    payload: dict = None,
    timeout: int = REQUEST_TIMEOUT,
    max_attempts: int = REQUEST_ATTEMPTS,
):
    """
    Make an HTTP request with automatic retry on timeout.

    Args:
        method: GET or POST
        url: Target URL for the request
        payload: JSON body for POST requests (optional)
        timeout: Base timeout in seconds (multiplied by attempt number for each retry)
        max_attempts: Maximum number of attempts

    Returns:
        Parsed JSON response, or None for an empty body

    Raises:
        asyncio.TimeoutError: If all attempts time out
        RelayResponseError: If the relay answers with a non-2xx status
        ValueError: For an unsupported method or a body that is not JSON
    """
    method = method.upper()
    if method not in ("GET", "POST"):
        raise ValueError(f"Unsupported HTTP method: {method}")

    for attempt in range(max_attempts):
        timeout_config = aiohttp.ClientTimeout(total=timeout * (attempt + 1))
        try:
            async with aiohttp.ClientSession(timeout=timeout_config) as session:
                async with session.request(method, url, json=payload) as response:
                    return await _process_response(response, url)
        except (asyncio.TimeoutError, TimeoutError):
            if attempt < max_attempts - 1:
                continue
            _LOGGER.warning("Timeout on %s request to %s after %s attempts", method, url, max_attempts)
            raise
    return None


async def _process_response(response, url: str):
    """
    Extract JSON from a relay response.

    The relay does not always label its bodies, so the content type is not
    checked; an empty body means "nothing to report".
    """
    text = await response.text()

    if not 200 <= response.status < 300:
        _LOGGER.warning("Relay returned HTTP %s from %s: %s", response.status, url, text[:200])
        raise RelayResponseError(response.status, text[:200])

    if not text.strip():
        return None
    try:
        return await response.json(content_type=None)
    except ValueError as e:
        _LOGGER.error("Relay sent a non-JSON body from %s: %s", url, text[:200])
        raise ValueError(f"Expected JSON from {url}: {text[:200]}") from e


async def send_telemetry(relay_url: str, telemetry: dict):
    """POST our own telemetry in the relay's compact format."""
    url = normalize_relay_url(relay_url) + RELAY_SEND_PATH
    return await make_request("POST", url, payload=to_wire(telemetry))


async def receive_reports(relay_url: str):
    """GET the latest peer reports. The caller validates whatever comes back."""
    url = normalize_relay_url(relay_url) + RELAY_RECEIVE_PATH
    return await make_request("GET", url)
