from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Union

import numpy as np


PathLike = Union[str, Path]


@dataclass(frozen=True)
class TorchScriptBackendConfig:
    """
    Configuration for TorchScript inference.

    - output_index: if the model returns multiple outputs, select this index
      (pose exports put the (1, 56, N) tensor first)
    """

    output_index: int = 0


class TorchScriptBackend:
    """
    TorchScript pose model loaded with `torch.jit.load` on CPU.

    Doesn't require model class code, unlike raw .pt checkpoints.
    """

    def __init__(self, model_path: PathLike, cfg: TorchScriptBackendConfig = TorchScriptBackendConfig()):
        try:
            import torch  # type: ignore
        except Exception as e:  # pragma: no cover
            raise ImportError("torch is required for the TorchScript backend. Install with `pip install torch`.") from e

        self._torch = torch
        self.model_path = Path(model_path)
        if not self.model_path.exists():
            raise FileNotFoundError(str(self.model_path))

        self.output_index = cfg.output_index

        model = torch.jit.load(str(self.model_path), map_location="cpu")
        model.eval()
        self.model = model

    def infer(self, blob: np.ndarray) -> np.ndarray:
        if self.model is None:
            raise RuntimeError("TorchScriptBackend is closed")
        torch = self._torch
        x = torch.as_tensor(blob).float().contiguous()

        with torch.no_grad():
            y = self.model(x)

        if isinstance(y, (tuple, list)):
            y = y[self.output_index]

        return y.detach().cpu().numpy()

    def close(self) -> None:
        self.model = None

    def __enter__(self) -> "TorchScriptBackend":
        return self

    def __exit__(self, *exc) -> None:
        self.close()
