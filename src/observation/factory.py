"""
Frame source selection from configuration.
"""

from __future__ import annotations

from typing import Any

from models.config import Config
from .base import FrameSource
from .fixture_source import FixtureSource
from .live_source import LiveSource
from .preview import PreviewWindow


def create_source_from_config(config: Config, scratch_root: str, cancel: Any = None) -> FrameSource:
    """
    Create the frame source for the configured mode.

    demo -> FixtureSource over fixture.directory
    live -> LiveSource; the preview window is only attached under the
            interactive execution model.
    """
    if config.run.is_demo:
        return FixtureSource(config.fixture.directory, config.fixture.site_name)

    interactive = config.run.is_interactive
    preview_window = PreviewWindow() if interactive and config.live.preview else None
    return LiveSource(
        config.live,
        scratch_root=scratch_root,
        interactive=interactive,
        preview_window=preview_window,
        cancel=cancel,
    )
