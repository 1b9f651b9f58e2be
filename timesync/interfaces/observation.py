"""
Observation Interface - Watch Face Reading.

Defines the contract for reading the time shown on a physical analog watch
from a captured image.
"""

from abc import ABC, abstractmethod
from datetime import time

import numpy as np


class ObservationInterface(ABC):
    """
    Interface for watch face time detection.

    Implementations should handle:
    - Locating the dial and its hands in the frame
    - Converting hand positions to a time of day
    - Returning None (never raising) when the time cannot be read
    """

    @abstractmethod
    def detect(self, frame: np.ndarray) -> time | None:
        """
        Reads the time of day from a watch face image.

        Args:
            frame: BGR image of the watch face.

        Returns:
            The observed time of day, or None if it could not be determined.
        """
        pass

    @abstractmethod
    def is_ready(self) -> bool:
        """
        Checks if the detector can currently produce observations.

        Returns:
            True if a detection backend is loaded.
        """
        pass
