"""
Minimal JSON-over-HTTP transport for provider calls.
"""

import json
import logging
from typing import Any, Dict
from urllib.error import HTTPError, URLError
from urllib.request import Request, urlopen

from ..core.exceptions import ProviderCallError
from .base import ProviderRequest


logger = logging.getLogger(__name__)

ERROR_BODY_LIMIT = 1000


def post_json(request: ProviderRequest, provider: str, timeout: int = 60) -> Dict[str, Any]:
    """
    POST a provider request and decode the JSON response envelope.

    Args:
        request: The built provider request
        provider: Provider name, for error attribution
        timeout: Socket timeout in seconds

    Returns:
        The decoded response envelope

    Raises:
        ProviderCallError: On HTTP errors, connection failures, timeouts or
            an undecodable envelope
    """
    try:
        data = json.dumps(request.body).encode("utf-8")
        http_request = Request(
            request.url,
            data=data,
            headers=request.headers,
            method="POST",
        )

        logger.debug(f"Making request to {request.redacted_url()}")

        with urlopen(http_request, timeout=timeout) as response:
            response_data = response.read().decode("utf-8")
            return json.loads(response_data)

    except HTTPError as e:
        error_body = e.read().decode("utf-8", errors="replace") if e.fp else str(e)
        error_body = error_body[:ERROR_BODY_LIMIT]
        logger.error(f"HTTP error from {provider}: {e.code} - {error_body}")
        raise ProviderCallError(
            f"{provider} API error: {e.code} - {error_body}",
            provider=provider,
            status_code=e.code,
        )
    except URLError as e:
        logger.error(f"Failed to connect to {provider}: {e}")
        raise ProviderCallError(
            f"Failed to connect to {provider} at {request.redacted_url()}: {e}",
            provider=provider,
        )
    except ValueError as e:
        # UnicodeDecodeError and JSONDecodeError are both ValueErrors
        logger.error(f"Invalid response body from {provider}: {e}")
        raise ProviderCallError(
            f"Invalid response body from {provider}: {e}",
            provider=provider,
        )
    except (TimeoutError, OSError) as e:
        logger.error(f"Error calling {provider}: {e}")
        raise ProviderCallError(
            f"Error calling {provider}: {e}",
            provider=provider,
        )
