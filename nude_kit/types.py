from dataclasses import dataclass
from typing import Tuple

from .labels import Label


@dataclass(frozen=True)
class Rect:
    """
    Integer rectangle in original image pixels (top-left corner + size).

    Values are not clamped to the image, so `x`/`y` may be negative.
    """

    x: int
    y: int
    width: int
    height: int

    @property
    def area(self) -> int:
        return self.width * self.height

    def as_xywh(self) -> Tuple[int, int, int, int]:
        return self.x, self.y, self.width, self.height

    def as_xyxy(self) -> Tuple[int, int, int, int]:
        return self.x, self.y, self.x + self.width, self.y + self.height


@dataclass(frozen=True)
class Candidate:
    """
    One decoded model row that passed the confidence threshold.

    Geometry is in letterboxed space: `x`/`y` are the rounded top-left corner
    with padding removed, `width`/`height` are the model values as-is.
    """

    class_id: int
    score: float
    x: float
    y: float
    width: float
    height: float


@dataclass(frozen=True)
class Detection:
    """`score` is the model's float32 confidence widened to float, so 0.9 reads back as 0.8999999761581421."""

    label: Label
    score: float
    rect: Rect

    @property
    def class_id(self) -> int:
        return self.label.index

    def as_xyxy(self) -> Tuple[int, int, int, int]:
        return self.rect.as_xyxy()
