from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Union

import numpy as np


PathLike = Union[str, Path]

LOGGER = logging.getLogger(__name__)


@dataclass(frozen=True)
class TorchScriptBackendConfig:
    """
    - device: torch device string the detector runs on, e.g. "cpu" or "cuda:0"
    - half: feed float16 blobs, for exports traced in half precision
    - output_index: position of the (1, 22, N) head when forward() returns a tuple
    """

    device: str = "cpu"
    half: bool = False
    output_index: int = 0


class TorchScriptBackend:
    """Region detector exported with `torch.jit.save`; no model class code is needed to load it."""

    def __init__(self, model_path: PathLike, cfg: TorchScriptBackendConfig = TorchScriptBackendConfig()):
        try:
            import torch  # type: ignore
        except Exception as e:  # pragma: no cover
            raise ImportError(
                "The TorchScript backend needs torch. Install the extra with `pip install nude-kit[torch]`."
            ) from e

        self.model_path = Path(model_path)
        if not self.model_path.is_file():
            raise FileNotFoundError(str(self.model_path))

        self._torch = torch
        self.cfg = cfg
        self.device = torch.device(cfg.device)

        LOGGER.info("Loading TorchScript model from %s on %s", self.model_path, self.device)
        self.model = torch.jit.load(str(self.model_path), map_location=self.device).eval()

    def _head(self, out):
        if isinstance(out, (tuple, list)):
            if not -len(out) <= self.cfg.output_index < len(out):
                raise IndexError(f"output_index {self.cfg.output_index} out of range for {len(out)} model outputs")
            out = out[self.cfg.output_index]
        return out

    def infer(self, blob: np.ndarray) -> np.ndarray:
        """Run one (1, 3, 320, 320) blob; the head comes back as float32 NumPy whatever the export precision."""

        torch = self._torch
        dtype = torch.float16 if self.cfg.half else torch.float32
        x = torch.as_tensor(np.ascontiguousarray(blob)).to(device=self.device, dtype=dtype)

        with torch.no_grad():
            head = self._head(self.model(x))
        return head.float().cpu().numpy()
