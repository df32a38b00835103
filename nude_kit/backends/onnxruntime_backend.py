from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Optional, Sequence, Tuple, Union

import numpy as np

from ..letterbox import INPUT_SIZE


PathLike = Union[str, Path]

LOGGER = logging.getLogger(__name__)

EXPECTED_INPUT_SHAPE: Tuple[int, int, int, int] = (1, 3, INPUT_SIZE, INPUT_SIZE)


@dataclass(frozen=True)
class OnnxRuntimeBackendConfig:
    """
    Configuration for ONNX Runtime inference.

    - providers: ORT execution providers (e.g., ["CPUExecutionProvider"]); None lets ORT choose
    - input_name/output_name: override auto-selected I/O names if needed
    - intra_op_num_threads: 0 keeps the ORT default
    """

    providers: Optional[Sequence[str]] = None
    input_name: Optional[str] = None
    output_name: Optional[str] = None
    intra_op_num_threads: int = 0


def _check_declared_shape(declared: Sequence[object]) -> None:
    # Symbolic dims come back as strings or None; only fixed ints are checked.
    if len(declared) != len(EXPECTED_INPUT_SHAPE):
        raise ValueError(f"Model input has rank {len(declared)}, expected shape {EXPECTED_INPUT_SHAPE}.")
    for got, want in zip(declared, EXPECTED_INPUT_SHAPE):
        if isinstance(got, int) and got != want:
            raise ValueError(f"Model input shape {tuple(declared)} is incompatible with {EXPECTED_INPUT_SHAPE}.")


class OnnxRuntimeBackend:
    """
    ONNX Runtime session for the region detector.

    Takes the (1, 3, 320, 320) float32 blob and returns the primary output,
    expected to be (1, 4 + C, N).
    """

    def __init__(self, model_path: PathLike, cfg: OnnxRuntimeBackendConfig = OnnxRuntimeBackendConfig()):
        try:
            import onnxruntime as ort  # type: ignore
        except Exception as e:  # pragma: no cover
            raise ImportError(
                "onnxruntime is required for the ONNX backend. Install it with `pip install onnxruntime`."
            ) from e

        self._ort = ort
        self.model_path = Path(model_path)
        if not self.model_path.exists():
            raise FileNotFoundError(str(self.model_path))

        sess_opts = ort.SessionOptions()
        if cfg.intra_op_num_threads:
            sess_opts.intra_op_num_threads = int(cfg.intra_op_num_threads)
        providers = list(cfg.providers) if cfg.providers is not None else None

        LOGGER.info("Loading ONNX model from %s", self.model_path)
        self.session = ort.InferenceSession(str(self.model_path), sess_options=sess_opts, providers=providers)

        model_input = self.session.get_inputs()[0]
        self.input_name = cfg.input_name or model_input.name
        self.output_name = cfg.output_name or self.session.get_outputs()[0].name
        _check_declared_shape(model_input.shape)
        LOGGER.debug("ONNX session ready: input=%s output=%s providers=%s", self.input_name, self.output_name, self.providers_in_use)

    @property
    def providers_in_use(self) -> Sequence[str]:
        return tuple(self.session.get_providers())

    def infer(self, blob: np.ndarray) -> np.ndarray:
        outputs = self.session.run([self.output_name], {self.input_name: np.asarray(blob, dtype=np.float32)})
        return outputs[0]
