from __future__ import annotations

from typing import Iterable, Tuple

import numpy as np

from .skeleton import CONNECTION_COLORS, DISPLAY_CONFIDENCE_THRESHOLD, SKELETON_CONNECTIONS
from .types import Keypoint, PoseResult

_BOX_COLOR = (0, 255, 0)
_WHITE = (255, 255, 255)


def _point(kp: Keypoint, w: int, h: int) -> Tuple[int, int]:
    return int(np.clip(round(kp.x), 0, w - 1)), int(np.clip(round(kp.y), 0, h - 1))


def _keypoint_color(confidence: float) -> Tuple[int, int, int]:
    """Red (low) to orange/yellow (high), RGB."""
    return (255, int(np.clip(confidence, 0.0, 1.0) * 255), 0)


def draw_poses(
    image_rgb: np.ndarray,
    poses: Iterable[PoseResult],
    *,
    min_confidence: float = DISPLAY_CONFIDENCE_THRESHOLD,
    keypoint_radius: int = 5,
    line_thickness: int = 3,
    box_thickness: int = 2,
    font_scale: float = 0.6,
) -> np.ndarray:
    """
    Draw boxes, skeleton connections and keypoints on an RGB image and return a copy.

    Connections are drawn only when both endpoints reach `min_confidence`;
    keypoints below it are skipped. Poses are read, never modified.
    """

    try:
        import cv2  # type: ignore
    except Exception as e:  # pragma: no cover
        raise ImportError("OpenCV is required for draw_poses(). Install with `pip install opencv-python`.") from e

    if image_rgb is None or not hasattr(image_rgb, "shape"):
        raise TypeError("image_rgb must be a NumPy array (RGB).")
    if image_rgb.ndim != 3 or image_rgb.shape[2] != 3:
        raise ValueError(f"Expected image shape (H, W, 3), got {getattr(image_rgb, 'shape', None)}")

    out = image_rgb.copy()
    h, w = out.shape[:2]

    for pose in poses:
        x1, y1, x2, y2 = pose.box.as_xyxy()
        x1i = int(np.clip(round(x1), 0, w - 1))
        y1i = int(np.clip(round(y1), 0, h - 1))
        x2i = int(np.clip(round(x2), 0, w - 1))
        y2i = int(np.clip(round(y2), 0, h - 1))
        cv2.rectangle(out, (x1i, y1i), (x2i, y2i), _BOX_COLOR, thickness=box_thickness)
        cv2.putText(
            out,
            f"Person {pose.confidence:.2f}",
            (x1i, max(y1i - 5, 0)),
            cv2.FONT_HERSHEY_SIMPLEX,
            font_scale,
            _BOX_COLOR,
            thickness=2,
            lineType=cv2.LINE_AA,
        )

        kps = pose.keypoints
        for (start, end), color in zip(SKELETON_CONNECTIONS, CONNECTION_COLORS):
            if start >= len(kps) or end >= len(kps):
                continue
            a, b = kps[start], kps[end]
            if a.confidence < min_confidence or b.confidence < min_confidence:
                continue
            cv2.line(out, _point(a, w, h), _point(b, w, h), color, thickness=line_thickness, lineType=cv2.LINE_AA)

        # Keypoints on top of the lines.
        for kp in kps:
            if kp.confidence < min_confidence:
                continue
            center = _point(kp, w, h)
            cv2.circle(out, center, keypoint_radius + 1, _WHITE, thickness=-1, lineType=cv2.LINE_AA)
            cv2.circle(out, center, keypoint_radius, _keypoint_color(kp.confidence), thickness=-1, lineType=cv2.LINE_AA)

    return out
