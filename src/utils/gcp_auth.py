"""
Google Cloud Platform Authentication Utility

Builds service account credentials for the Vertex AI route of the hosted
backend. The service account key arrives as a JSON string in
GCP_SERVICE_ACCOUNT_JSON (typical for container platforms where files are
awkward to mount).
"""

import json
from typing import Any, Dict

from google.oauth2 import service_account

from src.core.errors import ConfigurationError
from src.utils.logger import setup_logger

logger = setup_logger(__name__)

CLOUD_PLATFORM_SCOPE = "https://www.googleapis.com/auth/cloud-platform"

REQUIRED_FIELDS = ["type", "project_id", "private_key", "client_email"]


def parse_service_account_json(gcp_json_str: str) -> Dict[str, Any]:
    """
    Parse and validate a service account key.

    Raises:
        ConfigurationError: Not JSON, or missing required fields
    """
    try:
        credentials_info = json.loads(gcp_json_str)
    except json.JSONDecodeError as e:
        logger.error(f"GCP_SERVICE_ACCOUNT_JSON is not valid JSON: {e}")
        raise ConfigurationError(
            "Invalid GCP_SERVICE_ACCOUNT_JSON format. "
            "Ensure you've pasted the complete service account JSON content."
        ) from e

    if not isinstance(credentials_info, dict):
        raise ConfigurationError("GCP_SERVICE_ACCOUNT_JSON must be a JSON object")

    missing_fields = [f for f in REQUIRED_FIELDS if f not in credentials_info]
    if missing_fields:
        raise ConfigurationError(f"Service account JSON missing required fields: {missing_fields}")

    return credentials_info


def build_service_account_credentials(gcp_json_str: str) -> service_account.Credentials:
    """
    Build cloud-platform scoped credentials from a service account key.

    Raises:
        ConfigurationError: The key is malformed or rejected by google-auth
    """
    credentials_info = parse_service_account_json(gcp_json_str)

    try:
        credentials = service_account.Credentials.from_service_account_info(
            credentials_info,
            scopes=[CLOUD_PLATFORM_SCOPE]
        )
    except ValueError as e:
        logger.error(f"Failed to load service account credentials: {e}")
        raise ConfigurationError(f"Cannot load service account credentials: {e}") from e

    logger.info(f"Loaded service account credentials for {credentials_info.get('client_email')}")
    return credentials
