from __future__ import annotations

import enum
import numbers

from .errors import InvalidClassIndex


NUM_CLASSES = 18


class Label(enum.Enum):
    """
    Closed set of region classes emitted by the detector.

    Values are the model's output row indices (0..17), so the enum itself is
    the index -> label table.
    """

    FEMALE_GENITALIA_COVERED = 0
    FACE_FEMALE = 1
    BUTTOCKS_EXPOSED = 2
    FEMALE_BREAST_EXPOSED = 3
    FEMALE_GENITALIA_EXPOSED = 4
    MALE_BREAST_EXPOSED = 5
    ANUS_EXPOSED = 6
    FEET_EXPOSED = 7
    BELLY_COVERED = 8
    FEET_COVERED = 9
    ARMPITS_COVERED = 10
    ARMPITS_EXPOSED = 11
    FACE_MALE = 12
    BELLY_EXPOSED = 13
    MALE_GENITALIA_EXPOSED = 14
    ANUS_COVERED = 15
    FEMALE_BREAST_COVERED = 16
    BUTTOCKS_COVERED = 17

    @classmethod
    def from_index(cls, index: object) -> "Label":
        # bool is an Integral too; True must not silently become index 1.
        if isinstance(index, bool) or not isinstance(index, numbers.Integral):
            raise InvalidClassIndex(index, NUM_CLASSES)
        try:
            return cls(int(index))
        except ValueError as exc:
            raise InvalidClassIndex(index, NUM_CLASSES) from exc

    @property
    def index(self) -> int:
        return self.value

    @property
    def is_exposed(self) -> bool:
        return self.name.endswith("_EXPOSED")


def label_for(index: object) -> Label:
    """Map a model class index to its `Label`, raising `InvalidClassIndex` when out of range."""

    return Label.from_index(index)
