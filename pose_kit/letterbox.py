import math
from dataclasses import dataclass
from typing import Tuple

import numpy as np

from .errors import DegenerateGeometry


@dataclass(frozen=True)
class LetterboxTransform:
    """
    Uniform scale + centered padding between a source image and the square model input.

    Padding uses integer division, so an odd leftover pixel ends up on the
    bottom/right edge. Models trained on this convention rely on it.
    """

    scale: float
    pad_x: int
    pad_y: int
    scaled_width: int
    scaled_height: int
    original_width: int
    original_height: int
    model_width: int
    model_height: int

    @property
    def original_size(self) -> Tuple[int, int]:
        return self.original_width, self.original_height

    @property
    def model_size(self) -> Tuple[int, int]:
        return self.model_width, self.model_height

    def to_source(self, mx, my):
        """Model-space -> source-image coordinates. Works on scalars or arrays."""
        return (mx - self.pad_x) / self.scale, (my - self.pad_y) / self.scale

    def to_model(self, sx, sy):
        return sx * self.scale + self.pad_x, sy * self.scale + self.pad_y


def compute_letterbox(
    original_width: int,
    original_height: int,
    model_width: int = 640,
    model_height: int = 640,
) -> LetterboxTransform:
    if min(original_width, original_height, model_width, model_height) <= 0:
        raise DegenerateGeometry(
            f"Image and model sizes must be positive, got {original_width}x{original_height} "
            f"-> {model_width}x{model_height}"
        )

    scale = min(model_width / original_width, model_height / original_height)
    if not scale > 0:
        raise DegenerateGeometry(f"Letterbox scale must be > 0, got {scale}")

    scaled_width = int(math.floor(original_width * scale))
    scaled_height = int(math.floor(original_height * scale))
    pad_x = (model_width - scaled_width) // 2
    pad_y = (model_height - scaled_height) // 2

    return LetterboxTransform(
        scale=scale,
        pad_x=pad_x,
        pad_y=pad_y,
        scaled_width=scaled_width,
        scaled_height=scaled_height,
        original_width=int(original_width),
        original_height=int(original_height),
        model_width=int(model_width),
        model_height=int(model_height),
    )


def letterbox_image(
    image: np.ndarray,
    transform: LetterboxTransform,
    color: Tuple[int, int, int] = (114, 114, 114),
) -> np.ndarray:
    """
    Resize `image` (H, W, 3) to the transform's scaled size and embed it at
    (pad_x, pad_y) on a model-sized canvas filled with `color`.
    """
    try:
        import cv2  # type: ignore
    except Exception as e:  # pragma: no cover
        raise ImportError("OpenCV is required for letterbox_image(). Install with `pip install opencv-python`.") from e

    if image.ndim != 3 or image.shape[2] != 3:
        raise ValueError(f"Expected image shape (H, W, 3), got {image.shape}")
    h, w = image.shape[:2]
    if (w, h) != transform.original_size:
        raise ValueError(f"Image is {w}x{h} but the transform was computed for {transform.original_size}")
    if transform.scaled_width < 1 or transform.scaled_height < 1:
        raise DegenerateGeometry(
            f"Image {w}x{h} collapses to {transform.scaled_width}x{transform.scaled_height} at scale {transform.scale}"
        )

    sw, sh = transform.scaled_width, transform.scaled_height
    if (w, h) != (sw, sh):
        image = cv2.resize(image, (sw, sh), interpolation=cv2.INTER_LINEAR)

    canvas = np.empty((transform.model_height, transform.model_width, 3), dtype=image.dtype)
    canvas[:] = color
    canvas[transform.pad_y : transform.pad_y + sh, transform.pad_x : transform.pad_x + sw] = image
    return canvas


def to_input_tensor(padded_rgb: np.ndarray) -> np.ndarray:
    """uint8 HWC RGB -> float32 (1, 3, H, W) in [0, 1]."""
    blob = padded_rgb.astype(np.float32) / 255.0
    return np.ascontiguousarray(np.transpose(blob, (2, 0, 1))[None, ...])
