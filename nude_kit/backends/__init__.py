"""
Inference backends for nude_kit.

Kept apart from the core so pre/post-processing can be used (and tested)
without installing an inference runtime. Each backend exposes
`infer(blob) -> np.ndarray` and can be passed straight to `NudeDetector`.
"""

from __future__ import annotations

__all__ = []
