"""
Wallet Service API - HTTP client for the wallet storage service.

Provides:
- generate_uuids: fresh wallet identifiers (GET uuid-generator)
- secure_post: authenticated form POST (e.g. POST wallet)

Every request carries the configured timeout. Nothing is retried.
"""

import json
import logging
from typing import Optional

import requests

from models import ApiKeyError, IdentifierGenerationError, ServiceError
from networks import ServiceConfig
from utils import timestamp_ms

logger = logging.getLogger(__name__)

# Error text returned by the service when api_code is rejected
UNKNOWN_API_KEY = "Unknown API Key"


def _error_message(response: requests.Response) -> str:
    """Best effort error text from a failed response (JSON `error` or body)."""
    text = response.text.strip()
    try:
        data = json.loads(text)
    except ValueError:
        return text
    if isinstance(data, dict):
        for key in ("error", "message"):
            if isinstance(data.get(key), str):
                return data[key].strip()
    return text


class BlockchainAPI:
    """
    Client for one wallet service instance.

    Usage:
        api = BlockchainAPI(ServiceConfig(api_code="..."))
        guid, shared_key = api.generate_uuids(2)
        api.secure_post("wallet", {...})
    """

    def __init__(self, config: Optional[ServiceConfig] = None,
                 session: Optional[requests.Session] = None):
        self.config = config or ServiceConfig()
        self._session = session or requests.Session()

    def _request(self, method: str, endpoint: str, **kwargs) -> requests.Response:
        url = self.config.url(endpoint)
        logger.debug("%s %s", method, url)
        try:
            response = self._session.request(
                method, url, timeout=self.config.timeout, **kwargs
            )
        except requests.Timeout as e:
            raise ServiceError(
                f"Request timed out: {method} {endpoint}",
                {"endpoint": endpoint, "timeout": self.config.timeout}
            ) from e
        except requests.RequestException as e:
            raise ServiceError(
                f"Request failed: {method} {endpoint}: {e}",
                {"endpoint": endpoint}
            ) from e

        if not response.ok:
            raise self._error_from_response(endpoint, response)
        return response

    @staticmethod
    def _error_from_response(endpoint: str, response: requests.Response) -> ServiceError:
        message = _error_message(response)
        context = {"endpoint": endpoint, "status": response.status_code}
        if message == UNKNOWN_API_KEY:
            return ApiKeyError(message, context)
        return ServiceError(message or f"HTTP {response.status_code}", context)

    def _with_api_code(self, data: dict) -> dict:
        if self.config.api_code:
            data["api_code"] = self.config.api_code
        return data

    def generate_uuids(self, n: int) -> list[str]:
        """
        Request `n` unique identifiers from the service.

        Raises:
            IdentifierGenerationError: If fewer than n identifiers come back
            ServiceError: On transport or HTTP errors
        """
        params = self._with_api_code({"format": "json", "n": n})
        response = self._request("GET", "uuid-generator", params=params)

        try:
            uuids = response.json().get("uuids")
        except (ValueError, AttributeError) as e:
            raise IdentifierGenerationError("Could not generate uuids") from e

        if not isinstance(uuids, list) or len(uuids) < n:
            raise IdentifierGenerationError(
                "Could not generate uuids",
                {"requested": n, "received": len(uuids) if isinstance(uuids, list) else 0}
            )
        return uuids

    def secure_post(self, endpoint: str, data: dict) -> str:
        """
        Form-encoded POST with api_code and a client timestamp added.

        Returns the response body.

        Raises:
            ApiKeyError: If the service rejects the api_code
            ServiceError: On any other failure
        """
        form = self._with_api_code(dict(data))
        form["ct"] = timestamp_ms()
        response = self._request("POST", endpoint, data=form)
        return response.text

    def close(self) -> None:
        self._session.close()
