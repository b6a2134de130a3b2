"""
FrameSource interface for pluggable image sources.

This defines the contract that all frame sources implement, so the run loop
works the same with replayable fixture images and a live camera feed.
"""

from __future__ import annotations

from abc import ABC, abstractmethod

from models.frame import Frame


class FrameSource(ABC):
    """
    Abstract base class for frame sources.

    A frame source produces one labelled frame per acquire() call. When no
    frame can be obtained it returns an Empty frame (frame.is_empty) that
    still carries the site label; acquisition failures are never raised.

    Can be used as a context manager:
        with FixtureSource(directory, site_name) as source:
            frame = source.acquire()
    """

    def __init__(self, site_name: str):
        self._site_name = site_name

    @property
    def site_name(self) -> str:
        """Logical location name attached to every frame."""
        return self._site_name

    @property
    def is_replayable(self) -> bool:
        """True for sources whose frames are fixtures that must not be deleted."""
        return False

    @abstractmethod
    def acquire(self) -> Frame:
        """
        Acquire the next frame.

        Returns:
            A Frame. frame.is_empty is True if no frame was obtainable.
        """
        pass

    def close(self) -> None:
        """Release any held resources. Safe to call multiple times."""
        pass

    def __enter__(self) -> "FrameSource":
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.close()
