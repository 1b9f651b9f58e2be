"""
Observation Service - Watch Face Reading.

The model that reads hand positions from a photo is not part of this
project. StubObservationService satisfies ObservationInterface and always
reports "could not read", which routes every image capture to the
ObservationUnavailable path. Real detectors can convert hand angles with
clock.angle_mapper.angles_to_time_of_day.
"""

from datetime import time

import cv2
import numpy as np

from logging_config import get_logger
from timesync.interfaces.observation import ObservationInterface

logger = get_logger(__name__)


def decode_image(data: bytes) -> np.ndarray | None:
    """Decodes uploaded image bytes to a BGR frame, or None if undecodable."""
    if not data:
        return None
    buffer = np.frombuffer(data, dtype=np.uint8)
    frame = cv2.imdecode(buffer, cv2.IMREAD_COLOR)
    if frame is None:
        logger.debug(f"Could not decode image ({len(data)} bytes)")
    return frame


class StubObservationService(ObservationInterface):
    """Placeholder detector that never produces an observation."""

    def detect(self, frame: np.ndarray) -> time | None:
        if frame is None or frame.size == 0:
            logger.debug("Empty frame passed to observation stub")
            return None
        h, w = frame.shape[:2]
        logger.info(f"Watch face detection not available (frame {w}x{h})")
        return None

    def is_ready(self) -> bool:
        return False
