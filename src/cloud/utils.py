"""
Utility functions for cloud operations.
"""

import logging
import re

DEDUP_KEY_MAX_LEN = 128
_UNSAFE_CHARS = re.compile(r"[^A-Za-z0-9_.\-]")


def check_cloud_config(config):
    """
    Check if the cloud configuration is valid.

    gcp.credentials_file must be present but may be empty (application
    default credentials are used then).

    Args:
        config: Cloud configuration dictionary (the parsed cloud_config.yaml)

    Returns:
        Boolean indicating if the configuration is valid
    """
    if not isinstance(config, dict) or 'gcp' not in config:
        logging.error("Invalid cloud configuration: missing 'gcp' section")
        return False

    required_settings = [
        'project_id',
        'credentials_file',
        'pubsub.topic_id',
    ]

    for setting in required_settings:
        value = config['gcp']
        for part in setting.split('.'):
            if not isinstance(value, dict) or part not in value:
                logging.error(f"Invalid cloud configuration: missing 'gcp.{setting}'")
                return False
            value = value[part]
        if value in (None, '') and setting != 'credentials_file':
            logging.error(f"Invalid cloud configuration: empty 'gcp.{setting}'")
            return False

    return True


def sanitize_identifier(value, max_len=DEDUP_KEY_MAX_LEN, fallback="site"):
    """
    Make a string safe for use as a message identifier.

    Spaces become hyphens, anything outside [A-Za-z0-9_.-] is dropped, an
    empty result becomes the fallback token, and the result is truncated to
    max_len characters.
    """
    cleaned = _UNSAFE_CHARS.sub("", str(value or "").replace(" ", "-"))
    if not cleaned:
        cleaned = fallback
    return cleaned[:max_len]


def build_dedup_key(site_name, timestamp):
    """
    Deduplication key for one report: "<sanitized-site>-<epoch>".

    Two deliveries of the same report carry the same key.
    """
    suffix = f"-{int(timestamp)}"
    return sanitize_identifier(site_name, max_len=DEDUP_KEY_MAX_LEN - len(suffix)) + suffix
