from dataclasses import dataclass
from typing import Optional

import numpy as np


NMS_SCORE_THRESHOLD = 0.25
IOU_THRESHOLD = 0.45


@dataclass(frozen=True)
class NMSConfig:
    score_threshold: float = NMS_SCORE_THRESHOLD
    iou_threshold: float = IOU_THRESHOLD
    # None keeps every surviving box.
    max_detections: Optional[int] = None


def rect_iou(rect: np.ndarray, others: np.ndarray) -> np.ndarray:
    """
    IoU between one (x, y, w, h) rectangle and an (M, 4) array of rectangles.

    Two rectangles whose combined area is zero count as fully overlapping.
    """

    rect = np.asarray(rect, dtype=np.int64)
    others = np.asarray(others, dtype=np.int64).reshape(-1, 4)

    xx1 = np.maximum(rect[0], others[:, 0])
    yy1 = np.maximum(rect[1], others[:, 1])
    xx2 = np.minimum(rect[0] + rect[2], others[:, 0] + others[:, 2])
    yy2 = np.minimum(rect[1] + rect[3], others[:, 1] + others[:, 3])

    w = np.maximum(0, xx2 - xx1)
    h = np.maximum(0, yy2 - yy1)
    inter = (w * h).astype(np.float64)

    total = rect[2] * rect[3] + others[:, 2] * others[:, 3]
    union = total - inter
    safe_union = np.where(total > 0, union, 1.0)
    return np.where(total > 0, inter / safe_union, 1.0)


def nms(rects: np.ndarray, scores: np.ndarray, cfg: NMSConfig = NMSConfig()) -> np.ndarray:
    """
    Greedy class-agnostic NMS over integer (x, y, w, h) rectangles.

    Boxes scoring below `cfg.score_threshold` are ignored. The rest are visited
    by descending score (ties keep input order) and a box is dropped when its
    IoU with an already kept box exceeds `cfg.iou_threshold`.

    Returns indices into `rects` of the kept boxes, highest score first.
    """

    rects = np.asarray(rects, dtype=np.int64).reshape(-1, 4)
    scores = np.asarray(scores, dtype=np.float32).reshape(-1)
    if rects.shape[0] != scores.shape[0]:
        raise ValueError(f"Got {rects.shape[0]} boxes but {scores.shape[0]} scores.")

    if rects.size == 0:
        return np.empty((0,), dtype=np.int32)

    eligible = np.where(scores >= np.float32(cfg.score_threshold))[0]
    order = eligible[np.argsort(-scores[eligible], kind="stable")]
    keep = []

    while order.size > 0:
        if cfg.max_detections is not None and len(keep) >= cfg.max_detections:
            break
        i = order[0]
        keep.append(i)

        iou = rect_iou(rects[i], rects[order[1:]])
        inds = np.where(iou <= cfg.iou_threshold)[0]
        order = order[inds + 1]

    return np.array(keep, dtype=np.int32)
