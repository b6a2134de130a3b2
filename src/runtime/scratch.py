"""
Scratch storage for captured frames and preprocessed artifacts.

Under the single-shot execution model the filesystem outside the temp
directory may be read-only (e.g. a serverless runtime), so frames go to an
ephemeral root. The interactive model keeps them under a durable local root.
"""

from __future__ import annotations

import logging
import os
import re
import tempfile
from typing import Optional

from models.config import SINGLE_SHOT, StorageConfig

EPHEMERAL_SUBDIR = "traffic_density"


def resolve_scratch_root(execution_model: str, storage: StorageConfig) -> str:
    """Return (and create) the scratch directory for the given execution model."""
    if execution_model == SINGLE_SHOT:
        root = storage.ephemeral_dir or os.path.join(tempfile.gettempdir(), EPHEMERAL_SUBDIR)
    else:
        root = storage.scratch_dir
    os.makedirs(root, exist_ok=True)
    return root


def site_slug(site_name: str) -> str:
    """Filesystem-safe form of a site label."""
    slug = re.sub(r"\s+", "_", site_name.strip().lower())
    slug = re.sub(r"[^a-z0-9_\-]", "", slug)
    return slug or "site"


def remove_quietly(path: Optional[str]) -> bool:
    """
    Best-effort file removal.

    Returns:
        True if the file was removed, False if there was nothing to remove or
        removal failed. Never raises.
    """
    if not path:
        return False
    try:
        os.remove(path)
        logging.debug(f"Removed {path}")
        return True
    except OSError as e:
        logging.debug(f"Could not remove {path}: {e}")
        return False
