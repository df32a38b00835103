from __future__ import annotations

import json
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, Optional, Tuple


BACKENDS = ("onnxruntime", "torchscript")


@dataclass(frozen=True)
class DetectorConfig:
    """
    Where the model lives and how to run it.

    Input size and thresholds are fixed module constants and are
    intentionally absent here.
    """

    model_path: str = "model.onnx"
    backend: Optional[str] = None
    onnx_providers: Optional[Tuple[str, ...]] = None
    torch_device: str = "cpu"
    torch_half: bool = False

    def __post_init__(self) -> None:
        if not isinstance(self.model_path, str) or not self.model_path.strip():
            raise ValueError(f"model_path must be a non-empty string, got {self.model_path!r}")
        if self.backend is not None and (not isinstance(self.backend, str) or self.backend not in BACKENDS):
            raise ValueError(f"backend must be one of {BACKENDS}, got {self.backend!r}")
        if self.onnx_providers is not None and not self.onnx_providers:
            raise ValueError("onnx_providers must not be empty if provided")
        if not isinstance(self.torch_device, str) or not self.torch_device.strip():
            raise ValueError(f"torch_device must be a non-empty string, got {self.torch_device!r}")
        if not isinstance(self.torch_half, bool):
            raise ValueError("torch_half must be a boolean")


def _optional_str(payload: Dict[str, Any], key: str) -> Optional[str]:
    value = payload.get(key)
    if value is None:
        return None
    if not isinstance(value, str) or not value.strip():
        raise ValueError(f"{key} must be a non-empty string")
    return value.strip()


def _coerce_providers(value: object) -> Optional[Tuple[str, ...]]:
    if value is None:
        return None
    if isinstance(value, str):
        items = [item.strip() for item in value.split(",")]
    elif isinstance(value, list) and all(isinstance(item, str) for item in value):
        items = [item.strip() for item in value]
    else:
        raise ValueError("onnx_providers must be a string or list of strings")
    if not items or any(not item for item in items):
        raise ValueError("onnx_providers must not contain empty strings")
    return tuple(items)


def load_detector_config(path: Path) -> DetectorConfig:
    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"Detector config not found: {path}")
    raw = path.read_text(encoding="utf-8")
    try:
        payload = json.loads(raw)
    except json.JSONDecodeError as exc:
        raise ValueError(f"Invalid detector config JSON: {path}") from exc
    if not isinstance(payload, dict):
        raise ValueError("Detector config must be a JSON object")

    allowed = {"model_path", "backend", "onnx_providers", "torch_device", "torch_half"}
    unknown = sorted(set(payload.keys()) - allowed)
    if unknown:
        raise ValueError(f"Unknown detector config keys: {unknown}")

    torch_half = payload.get("torch_half", False)
    if not isinstance(torch_half, bool):
        raise ValueError("torch_half must be a boolean")

    backend = _optional_str(payload, "backend")
    return DetectorConfig(
        model_path=_optional_str(payload, "model_path") or "model.onnx",
        backend=backend.lower() if backend else None,
        onnx_providers=_coerce_providers(payload.get("onnx_providers")),
        torch_device=_optional_str(payload, "torch_device") or "cpu",
        torch_half=torch_half,
    )
