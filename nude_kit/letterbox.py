from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Tuple

import numpy as np

from .errors import ImageLoadError


INPUT_SIZE = 320
PAD_COLOR: Tuple[int, int, int] = (0, 0, 0)


@dataclass(frozen=True)
class LetterboxResult:
    image: np.ndarray
    resize_factor: float
    pad_top: int
    pad_bottom: int
    pad_left: int
    pad_right: int
    # (width, height) of the image before padding
    resized_size: Tuple[int, int]


def _as_bgr(image: np.ndarray) -> np.ndarray:
    import cv2  # type: ignore

    # to_blob divides by 255; any other dtype would leave [0, 1].
    if image.dtype != np.uint8:
        raise ImageLoadError(f"Expected an 8-bit image (uint8), got dtype {image.dtype}")
    if image.ndim == 2:
        return cv2.cvtColor(image, cv2.COLOR_GRAY2BGR)
    if image.ndim == 3 and image.shape[2] == 3:
        return image
    if image.ndim == 3 and image.shape[2] == 4:
        # Alpha is dropped, not composited.
        return cv2.cvtColor(image, cv2.COLOR_BGRA2BGR)
    raise ImageLoadError(f"Expected image shape (H, W), (H, W, 3) or (H, W, 4), got {image.shape}")


def fit_size(width: int, height: int, size: int = INPUT_SIZE) -> Tuple[int, int]:
    """
    Aspect-preserving size whose longer side equals `size`.

    Each side is rounded half away from zero and kept at least 1 pixel.
    """

    r = min(size / width, size / height)
    resized_w = max(1, int(math.floor(width * r + 0.5)))
    resized_h = max(1, int(math.floor(height * r + 0.5)))
    return resized_w, resized_h


def compute_resize_factor(orig_size: Tuple[int, int], resized_size: Tuple[int, int]) -> float:
    """
    Single inverse scale derived from the ratio of the two diagonals.

    Computed in float32 so the factor matches what the exported model pipeline
    uses bit for bit.
    """

    w, h = np.float32(orig_size[0]), np.float32(orig_size[1])
    rw, rh = np.float32(resized_size[0]), np.float32(resized_size[1])
    return float(np.sqrt((w * w + h * h) / (rw * rw + rh * rh)))


def letterbox(image: np.ndarray, size: int = INPUT_SIZE) -> LetterboxResult:
    """
    Resize `image` so its longer side is `size` and pad it to a centered square.

    The border is opaque black. When the padding along an axis is odd the
    extra pixel goes to the bottom/right edge.

    Returns:
        LetterboxResult with the padded (size, size, 3) BGR image plus the
        resize factor and paddings needed to map boxes back.
    """
    try:
        import cv2  # type: ignore
    except Exception as e:  # pragma: no cover
        raise ImportError("OpenCV is required for letterbox(). Install with `pip install opencv-python`.") from e

    if image is None or not hasattr(image, "shape"):
        raise ImageLoadError("image must be a NumPy array (BGR).")
    if image.ndim < 2 or image.shape[0] == 0 or image.shape[1] == 0:
        raise ImageLoadError(f"Image has zero size: shape {image.shape}")

    image = _as_bgr(image)
    h, w = image.shape[:2]

    resized_w, resized_h = fit_size(w, h, size)
    if (w, h) != (resized_w, resized_h):
        resized = cv2.resize(image, (resized_w, resized_h), interpolation=cv2.INTER_LINEAR)
    else:
        resized = image

    resize_factor = compute_resize_factor((w, h), (resized_w, resized_h))

    pad_x = size - resized_w
    pad_y = size - resized_h
    top, left = pad_y // 2, pad_x // 2
    bottom, right = pad_y - top, pad_x - left

    padded = cv2.copyMakeBorder(resized, top, bottom, left, right, cv2.BORDER_CONSTANT, value=PAD_COLOR)

    return LetterboxResult(
        image=padded,
        resize_factor=resize_factor,
        pad_top=top,
        pad_bottom=bottom,
        pad_left=left,
        pad_right=right,
        resized_size=(resized_w, resized_h),
    )


def to_blob(image_bgr: np.ndarray) -> np.ndarray:
    # BGR -> RGB, normalize, HWC -> CHW, add batch
    blob = image_bgr[:, :, ::-1].astype(np.float32) / 255.0
    return np.ascontiguousarray(np.transpose(blob, (2, 0, 1))[None, ...])
