"""
GCP authentication for the alert publisher.

Credentials come from a service account JSON file when one is configured,
otherwise from Application Default Credentials (the identity of the
serverless runtime).
"""

import os
import logging
from typing import Optional, Sequence

import google.auth
from google.auth import credentials as auth_credentials
from google.auth.exceptions import DefaultCredentialsError
from google.oauth2 import service_account

PUBSUB_SCOPES = ("https://www.googleapis.com/auth/pubsub",)


def get_credentials(
    credentials_path: Optional[str],
    scopes: Sequence[str] = PUBSUB_SCOPES,
) -> Optional[auth_credentials.Credentials]:
    """
    Load GCP credentials for publishing.

    Args:
        credentials_path: Path to a service account JSON file, or None/empty
            to fall back to Application Default Credentials.
        scopes: OAuth scopes requested for the credentials.

    Returns:
        Credentials object, or None if nothing could be loaded.

    Example:
        >>> creds = get_credentials("secrets/gcp-credentials.json")
        >>> if creds:
        ...     print("Credentials loaded successfully")
    """
    if not credentials_path:
        try:
            creds, _project = google.auth.default(scopes=list(scopes))
            logging.info("Using application default credentials")
            return creds
        except DefaultCredentialsError as e:
            logging.error(f"No credentials file configured and no default credentials: {e}")
            return None

    if not os.path.isfile(credentials_path):
        logging.error(f"Credentials file not found: {credentials_path}")
        return None

    try:
        creds = service_account.Credentials.from_service_account_file(
            credentials_path, scopes=list(scopes)
        )
        logging.info(f"Successfully loaded credentials from {credentials_path}")
        return creds
    except (ValueError, OSError) as e:
        logging.error(f"Failed to load credentials from {credentials_path}: {e}")
        return None
