from __future__ import annotations

import logging
from typing import List, Sequence

import numpy as np

from .errors import DecodeError, InvalidClassIndex
from .labels import NUM_CLASSES, label_for
from .nms import NMSConfig, nms
from .types import Candidate, Detection, Rect


LOGGER = logging.getLogger(__name__)

CONF_THRESHOLD = 0.2


def round_half_away(values):
    """
    Round to the nearest integer, halves away from zero, keeping the dtype.

    `np.round` rounds halves to even, which shifts boxes by a pixel on .5 values.
    """

    values = np.asarray(values)
    whole = np.trunc(values)
    frac = values - whole
    step = np.where(np.abs(frac) >= 0.5, np.sign(values), 0).astype(values.dtype)
    return whole + step


def decode_candidates(
    raw: np.ndarray,
    pad_top: int = 0,
    pad_left: int = 0,
    num_classes: int = NUM_CLASSES,
) -> List[Candidate]:
    """
    Decode a raw (1, 4 + C, N) model output into candidates above `CONF_THRESHOLD`.

    Each of the N columns is `[cx, cy, w, h, score_0 .. score_{C-1}]` in
    letterboxed pixels. The best class is the first one reaching the row
    maximum. The top-left corner has the letterbox padding removed and is
    rounded; width/height stay as emitted by the model. A kept row with a
    NaN or infinite box raises `DecodeError`.
    """

    try:
        p = np.asarray(raw, dtype=np.float32)
    except (TypeError, ValueError) as e:
        raise DecodeError(f"Raw output is not a numeric tensor: {type(raw).__name__}") from e

    if p.ndim != 3:
        raise DecodeError(f"Expected raw output of rank 3 (1, {4 + num_classes}, N), got shape {p.shape}.")
    if p.shape[0] != 1:
        raise DecodeError(f"Batch > 1 is not supported (got shape {p.shape}). Pass one image at a time.")
    if p.shape[1] != 4 + num_classes:
        raise DecodeError(f"Expected {4 + num_classes} values per row, got shape {p.shape}.")

    rows = p[0].T  # (N, 4 + C)
    if rows.shape[0] == 0:
        return []

    class_scores = rows[:, 4:]
    class_ids = np.argmax(class_scores, axis=1)
    max_scores = class_scores[np.arange(rows.shape[0]), class_ids]

    keep = max_scores >= np.float32(CONF_THRESHOLD)
    row_idx = np.flatnonzero(keep)
    rows, class_ids, max_scores = rows[keep], class_ids[keep], max_scores[keep]

    bad = ~np.isfinite(rows[:, :4]).all(axis=1)
    if bad.any():
        first = int(row_idx[np.argmax(bad)])
        raise DecodeError(f"Row {first} has a non-finite box {p[0, :4, first].tolist()}.")

    cx, cy, w, h = rows[:, 0], rows[:, 1], rows[:, 2], rows[:, 3]
    half = np.float32(0.5)
    xs = round_half_away(cx - w * half - np.float32(pad_left))
    ys = round_half_away(cy - h * half - np.float32(pad_top))

    return [
        Candidate(
            class_id=int(cls_id),
            score=float(score),
            x=float(x),
            y=float(y),
            width=float(bw),
            height=float(bh),
        )
        for cls_id, score, x, y, bw, bh in zip(class_ids, max_scores, xs, ys, w, h)
    ]


def remap_candidate(candidate: Candidate, resize_factor: float) -> Rect:
    """
    Map a candidate from letterboxed space to original image pixels.

    The corner is scaled after rounding, the size is rounded after scaling,
    and all four values truncate toward zero. Nothing is clamped.
    """

    rf = np.float32(resize_factor)
    with np.errstate(over="ignore", invalid="ignore"):
        x = np.float32(candidate.x) * rf
        y = np.float32(candidate.y) * rf
        width = round_half_away(np.float32(candidate.width) * rf)
        height = round_half_away(np.float32(candidate.height) * rf)
    if not np.isfinite([x, y, width, height]).all():
        raise DecodeError(f"Box of {candidate} is not finite after scaling by {resize_factor}.")
    return Rect(x=int(x), y=int(y), width=int(width), height=int(height))


class NudePostprocessor:
    """
    Raw model output -> final detections in original image coordinates.

    Steps: decode rows above the confidence threshold, remap each box with the
    letterbox parameters, then run class-agnostic NMS on the remapped
    rectangles. Output order is the NMS keep order (highest score first).
    """

    def __init__(self, nms_cfg: NMSConfig = NMSConfig(), num_classes: int = NUM_CLASSES):
        self.nms_cfg = nms_cfg
        self.num_classes = num_classes

    def process(
        self,
        raw: np.ndarray,
        resize_factor: float = 1.0,
        pad_top: int = 0,
        pad_left: int = 0,
    ) -> List[Detection]:
        candidates = decode_candidates(raw, pad_top=pad_top, pad_left=pad_left, num_classes=self.num_classes)
        LOGGER.debug("Decoded %d candidates above %.2f", len(candidates), CONF_THRESHOLD)
        return self.to_detections(candidates, resize_factor)

    def to_detections(self, candidates: Sequence[Candidate], resize_factor: float) -> List[Detection]:
        if not candidates:
            return []

        # Resolve labels up front: a bad index is a model/label-table mismatch
        # and must fail even if NMS would have dropped that box.
        try:
            labels = [label_for(c.class_id) for c in candidates]
        except InvalidClassIndex as exc:
            LOGGER.critical(
                "Decoded class index %r has no label (model emits classes the label table does not cover).",
                exc.index,
            )
            raise

        rects = [remap_candidate(c, resize_factor) for c in candidates]
        keep_idx = nms(
            np.array([r.as_xywh() for r in rects], dtype=np.int64),
            np.array([c.score for c in candidates], dtype=np.float32),
            self.nms_cfg,
        )
        LOGGER.debug("Kept %d of %d candidates after NMS", len(keep_idx), len(candidates))

        return [Detection(label=labels[i], score=candidates[i].score, rect=rects[i]) for i in keep_idx]
