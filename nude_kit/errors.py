"""
Error kinds raised by the detection pipeline.

Every failure is raised synchronously and nothing is retried. A call either
returns its full list of detections or raises one of these.
"""

from __future__ import annotations

from typing import Any


class DetectionError(Exception):
    """Base class for every error raised by nude_kit."""


class ImageLoadError(DetectionError, ValueError):
    """The image could not be decoded, or it has zero width/height."""


class InferenceError(DetectionError, RuntimeError):
    """The inference adapter failed or returned a tensor of unexpected shape."""


class DecodeError(DetectionError, ValueError):
    """The raw model output cannot be interpreted (wrong rank or shape)."""


class InvalidClassIndex(DetectionError, ValueError):
    """
    A class index fell outside the label table.

    This means the model and the label table disagree, so it is never
    mapped to a fallback label.
    """

    def __init__(self, index: Any, num_classes: int = 18):
        self.index = index
        self.num_classes = num_classes
        super().__init__(f"Class index {index!r} is outside [0, {num_classes - 1}].")
