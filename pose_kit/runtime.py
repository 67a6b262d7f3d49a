from __future__ import annotations

import logging
from dataclasses import dataclass, replace
from pathlib import Path
from typing import Callable, List, Optional, Sequence, Tuple, Union

import numpy as np

from .letterbox import LetterboxTransform, compute_letterbox, letterbox_image, to_input_tensor
from .postprocess import PosePostConfig, PosePostprocessor, anchor_count
from .types import PoseResult


PathLike = Union[str, Path]

logger = logging.getLogger(__name__)


def find_project_root(
    start: Optional[PathLike] = None,
    markers: Sequence[str] = ("pyproject.toml", ".git"),
) -> Path:
    """
    Best-effort project root discovery, so `models/yolo11n-pose.onnx` resolves
    the same way from scripts, tests and notebooks.
    """

    p = Path(start) if start is not None else Path.cwd()
    p = p.resolve()

    if p.is_file():
        p = p.parent

    for parent in (p, *p.parents):
        for m in markers:
            if (parent / m).exists():
                return parent
    return p


def resolve_path(path: PathLike, root: Optional[PathLike] = "auto") -> Path:
    """
    Absolute paths are returned as-is; relative ones are resolved against
    `root`, or the project root when `root` is "auto"/None.
    """

    p = Path(path)
    if p.is_absolute():
        return p

    if root == "auto" or root is None:
        base = find_project_root()
    else:
        base = Path(root).resolve()

    return (base / p).resolve()


def read_image_rgb(path: PathLike) -> np.ndarray:
    try:
        import cv2  # type: ignore
    except Exception as e:  # pragma: no cover
        raise ImportError("OpenCV is required for read_image_rgb(). Install with `pip install opencv-python`.") from e

    img = cv2.imread(str(path), cv2.IMREAD_COLOR)
    if img is None:
        raise FileNotFoundError(f"Could not read image at path: {path}")
    return cv2.cvtColor(img, cv2.COLOR_BGR2RGB)


@dataclass(frozen=True)
class PreprocessResult:
    blob: np.ndarray
    transform: LetterboxTransform


class PosePipeline:
    """
    Plug-and-play pipeline: letterbox -> inference -> decode + NMS.

    Takes RGB images as `np.ndarray` (H, W, 3) and returns `PoseResult`s in
    original image coordinates. Closing the pipeline closes its backend.
    """

    def __init__(
        self,
        infer_fn: Callable[[np.ndarray], np.ndarray],
        *,
        backend: Optional[object] = None,
        backend_name: Optional[str] = None,
        model_size: Tuple[int, int] = (640, 640),
        pad_color: Tuple[int, int, int] = (114, 114, 114),
        post_cfg: PosePostConfig = PosePostConfig(),
    ):
        self._infer_fn = infer_fn
        self.backend = backend
        self.backend_name = backend_name
        self.model_size = model_size
        self.pad_color = pad_color
        self.post = PosePostprocessor(post_cfg)

    def preprocess(self, image_rgb: np.ndarray) -> PreprocessResult:
        if image_rgb is None or not hasattr(image_rgb, "shape"):
            raise TypeError("image_rgb must be a NumPy array (RGB).")
        if image_rgb.ndim != 3 or image_rgb.shape[2] != 3:
            raise ValueError(f"Expected image shape (H, W, 3), got {getattr(image_rgb, 'shape', None)}")

        orig_h, orig_w = image_rgb.shape[:2]
        model_w, model_h = self.model_size
        transform = compute_letterbox(orig_w, orig_h, model_w, model_h)
        padded = letterbox_image(image_rgb, transform, color=self.pad_color)
        return PreprocessResult(blob=to_input_tensor(padded), transform=transform)

    def __call__(self, image_rgb: np.ndarray) -> List[PoseResult]:
        prep = self.preprocess(image_rgb)
        logger.info(
            "Processing image %dx%d (scale=%.4f, pad=%d,%d)",
            prep.transform.original_width,
            prep.transform.original_height,
            prep.transform.scale,
            prep.transform.pad_x,
            prep.transform.pad_y,
        )
        preds = self._infer_fn(prep.blob)
        poses = self.post.process(preds, prep.transform)
        logger.info("Detected %d person(s)", len(poses))
        return poses

    def close(self) -> None:
        close = getattr(self.backend, "close", None)
        if close is not None:
            close()

    def __enter__(self) -> "PosePipeline":
        return self

    def __exit__(self, *exc) -> None:
        self.close()


def _sized_post_config(post_cfg: PosePostConfig, model_size: Tuple[int, int]) -> PosePostConfig:
    if post_cfg.num_detections is not None:
        return post_cfg
    return replace(post_cfg, num_detections=anchor_count(*model_size))


def load_pipeline(
    model_path: PathLike,
    *,
    backend: Optional[str] = None,
    root: Optional[PathLike] = "auto",
    model_size: Optional[Tuple[int, int]] = None,
    post_cfg: PosePostConfig = PosePostConfig(),
    onnx_providers: Optional[Sequence[str]] = None,
    onnx_input_name: Optional[str] = None,
    onnx_output_name: Optional[str] = None,
    torch_output_index: int = 0,
) -> PosePipeline:
    """
    Create a pipeline for a pose model on disk.

        with load_pipeline("models/yolo11n-pose.onnx") as pipe:
            poses = pipe(image_rgb)

    Args:
        model_path: relative paths resolve against the project root by default
        backend: "onnxruntime" or "torchscript"; None infers it from the extension
        model_size: (width, height); None uses the ONNX model's static input or 640x640.
            The anchor count follows it unless `post_cfg.num_detections` is set.
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
        size = model_size or ort_backend.input_size or (640, 640)
        return PosePipeline(
            ort_backend.infer,
            backend=ort_backend,
            backend_name="onnxruntime",
            model_size=size,
            post_cfg=_sized_post_config(post_cfg, size),
        )

    if chosen == "torchscript":
        from .backends.torchscript_backend import TorchScriptBackend, TorchScriptBackendConfig

        ts_backend = TorchScriptBackend(resolved, TorchScriptBackendConfig(output_index=torch_output_index))
        size = model_size or (640, 640)
        return PosePipeline(
            ts_backend.infer,
            backend=ts_backend,
            backend_name="torchscript",
            model_size=size,
            post_cfg=_sized_post_config(post_cfg, size),
        )

    raise ValueError(f"Unsupported backend: {backend!r}")
