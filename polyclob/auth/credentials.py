"""
In-memory holder for L2 API credentials.

One store per client. There is no internal locking: finish the credential
bootstrap before signing requests from several threads.
"""

import logging
from typing import Optional

from ..models import ApiCredentials
from ..exceptions import MissingCredentialsError

logger = logging.getLogger(__name__)


class CredentialStore:
    """Owns the API key/secret/passphrase for one client session."""

    def __init__(self, credentials: Optional[ApiCredentials] = None):
        self._credentials = credentials

    @property
    def credentials(self) -> Optional[ApiCredentials]:
        """Current credentials, or None before bootstrap."""
        return self._credentials

    def has_credentials(self) -> bool:
        return self._credentials is not None

    def set(self, credentials: ApiCredentials) -> None:
        """Replace the stored credentials."""
        self._credentials = credentials
        logger.info(f"API credentials set (api_key={credentials.api_key})")

    def clear(self) -> None:
        """Forget the stored credentials."""
        self._credentials = None
        logger.info("API credentials cleared")

    def require(self) -> ApiCredentials:
        """
        Get credentials for an L2 operation.

        Raises:
            MissingCredentialsError: If no credentials have been set
        """
        if self._credentials is None:
            raise MissingCredentialsError(
                "API credentials not set. Call create_or_derive_api_key() or set_api_creds() first."
            )
        return self._credentials

    def __repr__(self) -> str:
        api_key = self._credentials.api_key if self._credentials else None
        return f"CredentialStore(api_key={api_key})"
