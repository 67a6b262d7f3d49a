import logging
from dataclasses import dataclass
from typing import List, Optional

import numpy as np

from .errors import InvalidInputShape
from .letterbox import LetterboxTransform
from .nms import NMSConfig, confidence_order, suppress
from .skeleton import NUM_KEYPOINTS
from .types import BoundingBox, DetectionCandidate, Keypoint, PoseResult

logger = logging.getLogger(__name__)

# cx, cy, w, h, confidence, then (x, y, conf) per keypoint.
BOX_CHANNELS = 4
CONF_CHANNEL = 4
KEYPOINT_OFFSET = 5
NUM_CHANNELS = KEYPOINT_OFFSET + 3 * NUM_KEYPOINTS
STRIDES = (8, 16, 32)


def anchor_count(model_width: int, model_height: int, strides=STRIDES) -> int:
    """One anchor per grid cell of every detection head: 640x640 -> 8400, 320x320 -> 2100."""
    return sum((model_width // s) * (model_height // s) for s in strides)


@dataclass(frozen=True)
class PosePostConfig:
    """
    Post-processing settings for YOLO pose exports with a (1, 56, N) output.
    """

    conf_threshold: float = 0.25
    iou_threshold: float = 0.45
    # None derives the anchor count from the letterbox model size.
    num_detections: Optional[int] = None
    # None keeps every survivor.
    max_detections: Optional[int] = None
    # If False, skip NMS and only sort by confidence (then cap by `max_detections`).
    apply_nms: bool = True

    def __post_init__(self) -> None:
        if not 0.0 <= self.conf_threshold <= 1.0:
            raise ValueError("conf_threshold must be within [0, 1]")
        if not 0.0 <= self.iou_threshold <= 1.0:
            raise ValueError("iou_threshold must be within [0, 1]")
        if self.num_detections is not None and self.num_detections <= 0:
            raise ValueError("num_detections must be > 0")
        if self.max_detections is not None and self.max_detections < 0:
            raise ValueError("max_detections must be >= 0")


def _channel_major(preds, num_detections: int) -> np.ndarray:
    p = np.asarray(preds)
    expected = NUM_CHANNELS * num_detections
    if p.size != expected:
        raise InvalidInputShape(
            f"Expected {NUM_CHANNELS} x {num_detections} = {expected} values, got {p.size} (shape {p.shape})"
        )
    # Row c holds channel c for every slot; a view, not a transposed copy.
    return p.reshape(NUM_CHANNELS, num_detections)


def decode_candidates(
    preds,
    transform: LetterboxTransform,
    conf_threshold: float = 0.25,
    num_detections: Optional[int] = None,
) -> List[DetectionCandidate]:
    """
    Decode a raw pose tensor into confidence-filtered candidates in source-image coordinates.

    Args:
        preds: model output, flat or shaped (1, 56, N) / (56, N), channel-major
        transform: letterbox used when building the input tensor
        conf_threshold: slots with confidence below this are dropped
        num_detections: N, the number of anchor slots; None derives it from the
            transform's model size (see `anchor_count`)

    Candidates keep slot order; `source_index` is the slot.
    """

    if num_detections is None:
        num_detections = anchor_count(transform.model_width, transform.model_height)
    p = _channel_major(preds, num_detections)

    conf = p[CONF_CHANNEL].astype(np.float64)
    slots = np.nonzero(conf >= conf_threshold)[0]
    logger.debug("%d of %d slots pass confidence %.3f", slots.size, num_detections, conf_threshold)
    if slots.size == 0:
        return []

    sel = p[:, slots].astype(np.float64)
    orig_w, orig_h = transform.original_size
    scale = transform.scale

    width = sel[2] / scale
    height = sel[3] / scale
    cx, cy = transform.to_source(sel[0], sel[1])
    x = cx - width / 2
    y = cy - height / 2
    # Upper bound first: boxes wider than the image collapse to 0, width is left as is.
    x = np.maximum(0.0, np.minimum(x, orig_w - width))
    y = np.maximum(0.0, np.minimum(y, orig_h - height))

    kp = sel[KEYPOINT_OFFSET:].reshape(NUM_KEYPOINTS, 3, -1)
    kp_x, kp_y = transform.to_source(kp[:, 0], kp[:, 1])
    kp_x = np.clip(kp_x, 0.0, orig_w)
    kp_y = np.clip(kp_y, 0.0, orig_h)
    kp_conf = kp[:, 2]

    candidates: List[DetectionCandidate] = []
    for j, slot in enumerate(slots):
        keypoints = tuple(
            Keypoint(x=float(kp_x[k, j]), y=float(kp_y[k, j]), confidence=float(kp_conf[k, j]))
            for k in range(NUM_KEYPOINTS)
        )
        pose = PoseResult(
            box=BoundingBox(x=float(x[j]), y=float(y[j]), width=float(width[j]), height=float(height[j])),
            confidence=float(conf[slot]),
            keypoints=keypoints,
        )
        candidates.append(DetectionCandidate(pose=pose, source_index=int(slot)))

    return candidates


class PosePostprocessor:
    """
    Raw tensor -> final poses: confidence filter, greedy NMS, optional top-K.
    """

    def __init__(self, cfg: PosePostConfig = PosePostConfig()):
        self.cfg = cfg

    def decode(self, preds, transform: LetterboxTransform) -> List[DetectionCandidate]:
        return decode_candidates(
            preds,
            transform,
            conf_threshold=self.cfg.conf_threshold,
            num_detections=self.cfg.num_detections,
        )

    def process(self, preds, transform: LetterboxTransform) -> List[PoseResult]:
        candidates = self.decode(preds, transform)
        if not candidates:
            return []

        if self.cfg.apply_nms:
            poses = suppress(
                candidates,
                NMSConfig(iou_threshold=self.cfg.iou_threshold, max_detections=self.cfg.max_detections),
            )
        else:
            poses = self._select_topk(candidates)

        logger.debug("kept %d of %d candidates", len(poses), len(candidates))
        return poses

    def _select_topk(self, candidates: List[DetectionCandidate]) -> List[PoseResult]:
        scores = np.array([c.confidence for c in candidates], dtype=np.float64)
        sources = np.array([c.source_index for c in candidates], dtype=np.int64)
        order = confidence_order(scores, sources)
        if self.cfg.max_detections is not None:
            order = order[: self.cfg.max_detections]
        return [candidates[int(i)].pose for i in order]
