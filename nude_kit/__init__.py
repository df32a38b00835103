"""
Anatomical region detection for still images.

Letterbox preprocessing, raw-output decoding, confidence thresholding, NMS and
coordinate remapping for an 18-class YOLO-style detector. The model runtime is
injected as a plain `tensor -> tensor` callable; ONNX Runtime and TorchScript
adapters live in `nude_kit.backends`.
"""

from .errors import DecodeError, DetectionError, ImageLoadError, InferenceError, InvalidClassIndex
from .labels import NUM_CLASSES, Label, label_for
from .types import Candidate, Detection, Rect
from .image_io import load_image
from .letterbox import INPUT_SIZE, LetterboxResult, letterbox, to_blob
from .nms import IOU_THRESHOLD, NMS_SCORE_THRESHOLD, NMSConfig, nms
from .postprocess import CONF_THRESHOLD, NudePostprocessor, decode_candidates, remap_candidate
from .config import DetectorConfig, load_detector_config
from .runtime import NudeDetector, find_project_root, load_detector, load_detector_from_config, resolve_path
from .visualize import draw_detections

__all__ = [
    "DecodeError",
    "DetectionError",
    "ImageLoadError",
    "InferenceError",
    "InvalidClassIndex",
    "NUM_CLASSES",
    "Label",
    "label_for",
    "Candidate",
    "Detection",
    "Rect",
    "load_image",
    "INPUT_SIZE",
    "LetterboxResult",
    "letterbox",
    "to_blob",
    "IOU_THRESHOLD",
    "NMS_SCORE_THRESHOLD",
    "NMSConfig",
    "nms",
    "CONF_THRESHOLD",
    "NudePostprocessor",
    "decode_candidates",
    "remap_candidate",
    "DetectorConfig",
    "load_detector_config",
    "NudeDetector",
    "find_project_root",
    "load_detector",
    "load_detector_from_config",
    "resolve_path",
    "draw_detections",
]
