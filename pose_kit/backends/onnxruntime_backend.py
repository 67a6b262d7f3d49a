from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Optional, Sequence, Union

import numpy as np


PathLike = Union[str, Path]

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class OnnxRuntimeBackendConfig:
    """
    Configuration for ONNX Runtime inference.

    - providers: ORT execution providers; None lets ORT pick (CPU on a stock install)
    - input_name/output_name: override auto-selected I/O names if needed
    - optimize_graph: enable every ORT graph optimization
    """

    providers: Optional[Sequence[str]] = None
    input_name: Optional[str] = None
    output_name: Optional[str] = None
    optimize_graph: bool = True


class OnnxRuntimeBackend:
    """
    ONNX Runtime session for a pose export.

    Expects a float32 blob shaped (1, 3, H, W) and returns the first output,
    normally (1, 56, 8400). Use as a context manager or call `close()`.
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
        if cfg.optimize_graph:
            sess_opts.graph_optimization_level = ort.GraphOptimizationLevel.ORT_ENABLE_ALL
        providers = list(cfg.providers) if cfg.providers is not None else None
        self.session = ort.InferenceSession(str(self.model_path), sess_options=sess_opts, providers=providers)

        self.input_name = cfg.input_name or self.session.get_inputs()[0].name
        self.output_name = cfg.output_name or self.session.get_outputs()[0].name
        logger.info(
            "Loaded %s (input=%s, outputs=%s)",
            self.model_path.name,
            self.input_name,
            [o.name for o in self.session.get_outputs()],
        )

    @property
    def input_size(self) -> Optional[tuple]:
        """(width, height) when the model declares a static NCHW input, else None."""
        shape = self.session.get_inputs()[0].shape
        if len(shape) == 4 and isinstance(shape[2], int) and isinstance(shape[3], int):
            return int(shape[3]), int(shape[2])
        return None

    @property
    def providers_in_use(self) -> Sequence[str]:
        return tuple(self.session.get_providers())

    def infer(self, blob: np.ndarray) -> np.ndarray:
        if self.session is None:
            raise RuntimeError("OnnxRuntimeBackend is closed")
        outputs = self.session.run([self.output_name], {self.input_name: blob})
        return outputs[0]

    def close(self) -> None:
        # ORT has no explicit release; dropping the session frees it.
        self.session = None

    def __enter__(self) -> "OnnxRuntimeBackend":
        return self

    def __exit__(self, *exc) -> None:
        self.close()
