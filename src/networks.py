"""
Service configuration - Wallet storage service endpoints.

Selects which wallet service instance a new wallet is stored on.
"""

from dataclasses import dataclass
from typing import Optional

# ============================================
# Service Endpoints
# ============================================

DEFAULT_ROOT_URL = "https://blockchain.info/"
DEFAULT_API_ROOT_URL = "https://api.blockchain.info/"

# Seconds allowed for each HTTP request
DEFAULT_TIMEOUT = 30.0


def normalize_url(url: str) -> str:
    """Ensure a base URL ends with a single slash."""
    return url.rstrip('/') + '/'


@dataclass(frozen=True)
class ServiceConfig:
    """Configuration for a wallet storage service instance."""
    root_url: str = DEFAULT_ROOT_URL
    api_root_url: str = DEFAULT_API_ROOT_URL
    api_code: Optional[str] = None   # API credential forwarded on every request
    timeout: float = DEFAULT_TIMEOUT

    def url(self, endpoint: str) -> str:
        """Absolute URL of an endpoint on the wallet service."""
        return normalize_url(self.root_url) + endpoint.lstrip('/')
