"""
Replayable fixture source.

Cycles a fixed set of sample images for demo runs. The directory listing is
captured once at construction; files added later are not picked up.
"""

from __future__ import annotations

import logging
import os
import time
from typing import List

from models.frame import Frame
from .base import FrameSource

IMAGE_EXTENSIONS = (".jpg", ".jpeg", ".png", ".bmp")


def list_fixture_images(directory: str) -> List[str]:
    """Sorted paths of eligible image files in directory (non-recursive)."""
    if not os.path.isdir(directory):
        logging.warning(f"Fixture directory not found: {directory}")
        return []
    names = sorted(
        name for name in os.listdir(directory)
        if name.lower().endswith(IMAGE_EXTENSIONS)
        and os.path.isfile(os.path.join(directory, name))
    )
    return [os.path.join(directory, name) for name in names]


class FixtureSource(FrameSource):
    """
    Cyclic, order-preserving source over a fixed list of images.

    Example:
        source = FixtureSource("resources/images/samples", "Avenida dos Estados")
        frame = source.acquire()  # first file, then the next, wrapping around
    """

    def __init__(self, directory: str, site_name: str):
        super().__init__(site_name)
        self._directory = directory
        self._paths = list_fixture_images(directory)
        self._index = 0
        logging.info(f"[DEMO] Fixture source: {len(self._paths)} image(s) in {directory}")

    @property
    def is_replayable(self) -> bool:
        return True

    @property
    def paths(self) -> List[str]:
        return list(self._paths)

    def __len__(self) -> int:
        return len(self._paths)

    def acquire(self) -> Frame:
        if not self._paths:
            return Frame.empty(self.site_name)

        path = self._paths[self._index]
        self._index = (self._index + 1) % len(self._paths)
        logging.info(f"[DEMO] Using fixture image: {path}")
        return Frame(
            site_name=self.site_name,
            captured_at=time.time(),
            path=path,
            transient=False,
        )
