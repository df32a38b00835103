from __future__ import annotations

from pathlib import Path
from typing import Union

import numpy as np

from .errors import ImageLoadError


ImageSource = Union[str, Path, bytes, bytearray, memoryview, np.ndarray]


def load_image(source: ImageSource) -> np.ndarray:
    """
    Decode `source` into an OpenCV BGR image.

    Accepts a file path, an encoded byte buffer (JPEG/PNG/...) or an already
    decoded uint8 array, which is returned unchanged. Arrays of any other
    dtype raise `ImageLoadError`; convert 16-bit or float images first.
    """
    try:
        import cv2  # type: ignore
    except Exception as e:  # pragma: no cover
        raise ImportError("OpenCV is required for load_image(). Install with `pip install opencv-python`.") from e

    if isinstance(source, np.ndarray):
        if source.dtype != np.uint8:
            raise ImageLoadError(f"Expected an 8-bit image (uint8), got dtype {source.dtype}")
        img = source
    elif isinstance(source, (bytes, bytearray, memoryview)):
        buf = np.frombuffer(source, dtype=np.uint8)
        if buf.size == 0:
            raise ImageLoadError("Image buffer is empty.")
        img = cv2.imdecode(buf, cv2.IMREAD_COLOR)
        if img is None:
            raise ImageLoadError("Could not decode image buffer.")
    elif isinstance(source, (str, Path)):
        path = Path(source)
        if not path.is_file():
            raise ImageLoadError(f"Could not read image at path: {path}")
        # imdecode instead of imread so non-ASCII paths work on every platform.
        buf = np.fromfile(str(path), dtype=np.uint8)
        img = cv2.imdecode(buf, cv2.IMREAD_COLOR) if buf.size else None
        if img is None:
            raise ImageLoadError(f"Could not decode image at path: {path}")
    else:
        raise ImageLoadError(f"Unsupported image source type: {type(source).__name__}")

    if img.ndim < 2 or img.shape[0] == 0 or img.shape[1] == 0:
        raise ImageLoadError(f"Image has zero size: shape {img.shape}")
    return img
