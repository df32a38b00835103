from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Callable, List, Optional, Sequence, Tuple, Union

import numpy as np

from .config import DetectorConfig
from .errors import InferenceError
from .image_io import ImageSource, load_image
from .labels import NUM_CLASSES
from .letterbox import INPUT_SIZE, LetterboxResult, letterbox, to_blob
from .nms import NMSConfig
from .postprocess import NudePostprocessor
from .types import Detection


PathLike = Union[str, Path]
InferFn = Callable[[np.ndarray], np.ndarray]

LOGGER = logging.getLogger(__name__)


ROOT_MARKERS: Tuple[str, ...] = ("pyproject.toml", "setup.py", ".git", "requirements.txt")


def find_project_root(start: Optional[PathLike] = None, markers: Sequence[str] = ROOT_MARKERS) -> Path:
    """
    Nearest directory at or above `start` (default: cwd) holding one of `markers`.

    Falls back to `start` itself when no marker is found.
    """

    here = Path.cwd() if start is None else Path(start)
    here = here.resolve()
    if here.is_file():
        here = here.parent

    candidates = (here, *here.parents)
    return next((d for d in candidates if any((d / m).exists() for m in markers)), here)


def resolve_path(path: PathLike, root: Optional[PathLike] = "auto") -> Path:
    """Absolute model path; relative ones are joined to `root` or, for "auto"/None, the project root."""

    p = Path(path)
    if p.is_absolute():
        return p
    base = find_project_root() if root in ("auto", None) else Path(root).resolve()
    return (base / p).resolve()


@dataclass(frozen=True)
class PreprocessResult:
    blob: np.ndarray
    orig_size: Tuple[int, int]
    letterbox: LetterboxResult


class NudeDetector:
    """
    Detection pipeline: letterbox -> inference -> decode -> remap -> NMS.

    `infer_fn` is the inference adapter: it receives the (1, 3, 320, 320)
    float32 blob and must return the raw (1, 4 + C, N) output. Any callable
    works, which is how tests run the pipeline without a model.

    The detector keeps no per-call state, so one instance can serve any number
    of sequential `detect` calls.
    """

    def __init__(
        self,
        infer_fn: InferFn,
        *,
        backend: Optional[object] = None,
        backend_name: Optional[str] = None,
        nms_cfg: NMSConfig = NMSConfig(),
    ):
        self._infer_fn = infer_fn
        self.backend = backend
        self.backend_name = backend_name
        self.post = NudePostprocessor(nms_cfg)

    def preprocess(self, image_bgr: np.ndarray) -> PreprocessResult:
        lb = letterbox(image_bgr, INPUT_SIZE)
        orig_h, orig_w = image_bgr.shape[:2]
        return PreprocessResult(blob=to_blob(lb.image), orig_size=(orig_w, orig_h), letterbox=lb)

    def infer(self, blob: np.ndarray) -> np.ndarray:
        try:
            raw = self._infer_fn(blob)
        except Exception as exc:
            raise InferenceError(f"Inference failed: {exc}") from exc

        if raw is None or not hasattr(raw, "shape"):
            raise InferenceError(f"Inference returned {type(raw).__name__}, expected an array.")
        shape = tuple(raw.shape)
        if len(shape) != 3 or shape[0] != 1 or shape[1] != 4 + NUM_CLASSES:
            raise InferenceError(f"Inference returned shape {shape}, expected (1, {4 + NUM_CLASSES}, N).")
        return raw

    def postprocess(self, raw: np.ndarray, prep: PreprocessResult) -> List[Detection]:
        lb = prep.letterbox
        return self.post.process(raw, resize_factor=lb.resize_factor, pad_top=lb.pad_top, pad_left=lb.pad_left)

    def detect(self, source: ImageSource) -> List[Detection]:
        image = load_image(source)
        prep = self.preprocess(image)
        raw = self.infer(prep.blob)
        detections = self.postprocess(raw, prep)
        LOGGER.debug(
            "Detected %d regions in %dx%d image (resize_factor=%.4f)",
            len(detections),
            prep.orig_size[0],
            prep.orig_size[1],
            prep.letterbox.resize_factor,
        )
        return detections

    def __call__(self, source: ImageSource) -> List[Detection]:
        return self.detect(source)


def load_detector(
    model_path: PathLike = "model.onnx",
    *,
    backend: Optional[str] = None,
    root: Optional[PathLike] = "auto",
    nms_cfg: NMSConfig = NMSConfig(),
    onnx_providers: Optional[Sequence[str]] = None,
    onnx_input_name: Optional[str] = None,
    onnx_output_name: Optional[str] = None,
    torch_device: str = "cpu",
    torch_half: bool = False,
    torch_output_index: int = 0,
) -> NudeDetector:
    """
    Create a detector for a model on disk.

        detector = load_detector("model.onnx")  # resolves from project root by default
        detections = detector("image.jpg")

    Args:
        model_path: path to the exported model; relative paths resolve against project root by default
        backend: "onnxruntime" or "torchscript"; None infers it from the extension
        root: base directory for resolving relative model paths ("auto" uses best-effort project root)
    """

    resolved = resolve_path(model_path, root=root)
    chosen = backend
    if chosen is None:
        suffix = resolved.suffix.lower()
        if suffix == ".onnx":
            chosen = "onnxruntime"
        elif suffix in {".torchscript", ".ts", ".pt"}:
            chosen = "torchscript"
        else:
            raise ValueError(
                f"Could not infer backend from extension '{suffix}'. Pass backend=... explicitly."
            )

    chosen = chosen.lower()
    if chosen == "onnxruntime":
        from .backends.onnxruntime_backend import OnnxRuntimeBackend, OnnxRuntimeBackendConfig

        ort_backend = OnnxRuntimeBackend(
            resolved,
            OnnxRuntimeBackendConfig(
                providers=onnx_providers,
                input_name=onnx_input_name,
                output_name=onnx_output_name,
            ),
        )
        return NudeDetector(ort_backend.infer, backend=ort_backend, backend_name="onnxruntime", nms_cfg=nms_cfg)

    if chosen == "torchscript":
        from .backends.torchscript_backend import TorchScriptBackend, TorchScriptBackendConfig

        ts_backend = TorchScriptBackend(
            resolved,
            TorchScriptBackendConfig(device=torch_device, half=torch_half, output_index=torch_output_index),
        )
        return NudeDetector(ts_backend.infer, backend=ts_backend, backend_name="torchscript", nms_cfg=nms_cfg)

    raise ValueError(f"Unsupported backend: {backend!r}")


def load_detector_from_config(cfg: DetectorConfig, *, root: Optional[PathLike] = "auto") -> NudeDetector:
    return load_detector(
        cfg.model_path,
        backend=cfg.backend,
        root=root,
        onnx_providers=cfg.onnx_providers,
        torch_device=cfg.torch_device,
        torch_half=cfg.torch_half,
    )
