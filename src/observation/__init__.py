"""
Observation layer for pluggable frame sources.

This layer abstracts where frames come from (fixture images, remote camera
feed) from the run loop. Each source implements the FrameSource interface and
returns Frame objects.
"""

from .base import FrameSource
from .fixture_source import FixtureSource
from .live_source import LiveSource
from .factory import create_source_from_config

__all__ = [
    "FrameSource",
    "FixtureSource",
    "LiveSource",
    "create_source_from_config",
]
