"""Configuration module for orgMCP.

Loads configuration from environment variables with sensible defaults.
"""

import os
from dataclasses import dataclass
from pathlib import Path


@dataclass
class Config:
    """Application configuration."""

    org_root: Path
    org_port: int
    journal_dir: Path
    template_path: Path | None
    policy_path: Path | None
    auth_token: str | None
    read_only: bool
    sync_interval: int

    @classmethod
    def from_env(cls, read_only_override: bool | None = None) -> "Config":
        """Load configuration from environment variables.

        Args:
            read_only_override: If provided, overrides the ORG_READ_ONLY env var.
        """
        default_root = str(Path.home() / "org")
        org_root = Path(os.getenv("ORG_ROOT", default_root)).expanduser()

        port_str = os.getenv("ORG_PORT", "8080")
        try:
            org_port = int(port_str)
            if not 1 <= org_port <= 65535:
                raise ValueError(f"Port must be between 1 and 65535, got {org_port}")
        except ValueError as e:
            raise ValueError(f"Invalid ORG_PORT value '{port_str}': {e}") from e

        # Journal directory is relative to the org root unless absolute
        journal_dir = org_root / Path(os.getenv("ORG_JOURNAL_DIR", "journal")).expanduser()

        template = os.getenv("ORG_TEMPLATE")
        template_path = Path(template).expanduser() if template else None

        policy = os.getenv("ORG_POLICY_FILE")
        policy_path = Path(policy).expanduser() if policy else None

        # Auth token - must be at least 32 bytes if set
        auth_token = os.getenv("ORG_AUTH_TOKEN")
        if auth_token is not None:
            if len(auth_token) < 32:
                raise ValueError("ORG_AUTH_TOKEN must be at least 32 characters for security")

        # Read-only mode - CLI flag takes precedence over env var
        if read_only_override is not None:
            read_only = read_only_override
        else:
            read_only = os.getenv("ORG_READ_ONLY", "").lower() in ("1", "true", "yes")

        interval_str = os.getenv("ORG_SYNC_INTERVAL", "30")
        try:
            sync_interval = int(interval_str)
            if sync_interval < 0:
                raise ValueError(f"Sync interval cannot be negative, got {sync_interval}")
        except ValueError as e:
            raise ValueError(f"Invalid ORG_SYNC_INTERVAL value '{interval_str}': {e}") from e

        return cls(
            org_root=org_root,
            org_port=org_port,
            journal_dir=journal_dir,
            template_path=template_path,
            policy_path=policy_path,
            auth_token=auth_token,
            read_only=read_only,
            sync_interval=sync_interval,
        )
