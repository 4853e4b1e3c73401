"""Authentication module for orgMCP.

Bearer token validation for the MCP server through FastMCP's auth system,
plus the read-only guard used by tools that write files.
"""

import hmac
import logging

from fastmcp.server.auth import AccessToken, TokenVerifier

from org_mcp.config import Config

logger = logging.getLogger(__name__)


class AuthError(Exception):
    """Raised when an operation is not permitted."""

    pass


class BearerTokenVerifier(TokenVerifier):
    """FastMCP TokenVerifier that checks bearer tokens against ORG_AUTH_TOKEN."""

    def __init__(self, config: Config):
        super().__init__()
        self._config = config

    async def verify_token(self, token: str) -> AccessToken | None:
        """
        Verify a bearer token and return access info if valid.

        Args:
            token: The bearer token (without "Bearer " prefix)

        Returns:
            AccessToken if valid, None if invalid
        """
        # No token configured: every request is allowed
        if self._config.auth_token is None:
            return AccessToken(
                token=token or "anonymous",
                client_id="anonymous",
                scopes=["read", "write"],
            )

        if not token:
            logger.warning("Empty authentication token")
            return None

        # Constant-time comparison
        if not hmac.compare_digest(token, self._config.auth_token):
            logger.warning("Invalid authentication token")
            return None

        scopes = ["read"] if self._config.read_only else ["read", "write"]
        return AccessToken(token=token, client_id="authenticated", scopes=scopes)


def get_auth_provider(config: Config) -> BearerTokenVerifier | None:
    """Return a BearerTokenVerifier if ORG_AUTH_TOKEN is set, None otherwise."""
    if config.auth_token is not None:
        return BearerTokenVerifier(config)
    return None


def check_write_permission(config: Config) -> None:
    """
    Check if write operations are allowed.

    Raises:
        AuthError: If the server is in read-only mode
    """
    if config.read_only:
        logger.warning("Write operation rejected: server is in read-only mode")
        raise AuthError("Server is in read-only mode")
