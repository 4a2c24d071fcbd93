"""Secret Manager utilities for securely accessing secrets."""

import os
from functools import lru_cache

from google.cloud import secretmanager


@lru_cache(maxsize=32)
def access_secret(project_id: str, secret_id: str, version: str = "latest") -> str:
    """Access a secret from Google Cloud Secret Manager.

    Args:
        project_id: GCP project ID
        secret_id: Secret ID (e.g., "gemini-api-key")
        version: Secret version (default: "latest")

    Returns:
        Secret value as string
    """
    client = secretmanager.SecretManagerServiceClient()
    name = f"projects/{project_id}/secrets/{secret_id}/versions/{version}"

    response = client.access_secret_version(request={"name": name})
    return response.payload.data.decode("UTF-8")


def get_secret_or_env(
    project_id: str,
    secret_id: str,
    env_var: str,
    default: str | None = None,
    fallback_env_vars: tuple[str, ...] = (),
) -> str | None:
    """Get secret from environment variables or fall back to Secret Manager.

    Args:
        project_id: GCP project ID (Secret Manager is skipped when empty)
        secret_id: Secret Manager secret ID
        env_var: Environment variable name, checked first
        default: Default value if no source is available
        fallback_env_vars: Additional environment variables checked in order

    Returns:
        Secret value or default
    """
    for name in (env_var, *fallback_env_vars):
        env_value = os.getenv(name)
        if env_value:
            return env_value

    if project_id:
        try:
            return access_secret(project_id, secret_id)
        except Exception:
            # Missing secret or no credentials: fall through to the default
            return default

    return default


def parse_list_secret(secret_value: str | None) -> list[str] | None:
    """Parse a comma-separated list secret.

    Args:
        secret_value: Comma-separated string or None

    Returns:
        List of strings or None
    """
    if not secret_value:
        return None

    return [item.strip() for item in secret_value.split(",") if item.strip()]
