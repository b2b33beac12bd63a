"""Image classifiers.

The controller only needs a yes/no answer to "does the current image
contain a cat"; how the image is acquired and classified is up to the
implementation.
"""

import logging
import random
from abc import ABC, abstractmethod

_LOGGER = logging.getLogger(__name__)


class ImageClassifier(ABC):
    """Decides whether the current camera image shows a cat."""

    @abstractmethod
    def image_contains_cat(self) -> bool:
        """Return True if a cat is in view."""


class FakeImageClassifier(ImageClassifier):
    """Classifier that guesses at random.

    Stands in for a real model. Pass a seed for reproducible answers.
    """

    def __init__(self, seed: int | None = None):
        self._random = random.Random(seed)

    def image_contains_cat(self) -> bool:
        result = self._random.random() < 0.5
        _LOGGER.debug(f"Fake classifier answered {result}")
        return result


class FixedImageClassifier(ImageClassifier):
    """Classifier that always returns the same answer."""

    def __init__(self, result: bool):
        self.result = bool(result)

    def image_contains_cat(self) -> bool:
        return self.result

    def __repr__(self) -> str:
        """String representation."""
        return f"<FixedImageClassifier {self.result}>"
