"""
YOLO pose post-processing: letterbox geometry, raw tensor decoding and NMS.

The core (letterbox, postprocess, nms, types) only needs NumPy. OpenCV is
used for resizing/drawing and the inference runtimes are imported lazily by
their backends.
"""

from .types import BoundingBox, DetectionCandidate, Keypoint, PoseResult
from .errors import DegenerateGeometry, InvalidInputShape, PoseError
from .letterbox import LetterboxTransform, compute_letterbox, letterbox_image, to_input_tensor
from .nms import NMSConfig, box_iou, nms, suppress
from .postprocess import PosePostConfig, PosePostprocessor, anchor_count, decode_candidates
from .runtime import PosePipeline, load_pipeline, find_project_root, resolve_path, read_image_rgb
from .config import PoseConfig, load_pose_config
from .skeleton import (
    CONNECTION_COLORS,
    DISPLAY_CONFIDENCE_THRESHOLD,
    KEYPOINT_NAMES,
    SKELETON_CONNECTIONS,
)
from .visualize import draw_poses

__all__ = [
    "BoundingBox",
    "DetectionCandidate",
    "Keypoint",
    "PoseResult",
    "DegenerateGeometry",
    "InvalidInputShape",
    "PoseError",
    "LetterboxTransform",
    "compute_letterbox",
    "letterbox_image",
    "to_input_tensor",
    "NMSConfig",
    "box_iou",
    "nms",
    "suppress",
    "PosePostConfig",
    "PosePostprocessor",
    "anchor_count",
    "decode_candidates",
    "PosePipeline",
    "load_pipeline",
    "find_project_root",
    "resolve_path",
    "read_image_rgb",
    "PoseConfig",
    "load_pose_config",
    "CONNECTION_COLORS",
    "DISPLAY_CONFIDENCE_THRESHOLD",
    "KEYPOINT_NAMES",
    "SKELETON_CONNECTIONS",
    "draw_poses",
]
