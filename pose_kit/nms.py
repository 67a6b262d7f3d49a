from dataclasses import dataclass
from typing import List, Optional, Sequence

import numpy as np

from .types import BoundingBox, DetectionCandidate, PoseResult


@dataclass(frozen=True)
class NMSConfig:
    iou_threshold: float = 0.45
    # None keeps every survivor.
    max_detections: Optional[int] = None


def box_iou(a: BoundingBox, b: BoundingBox) -> float:
    x1 = max(a.x, b.x)
    y1 = max(a.y, b.y)
    x2 = min(a.x + a.width, b.x + b.width)
    y2 = min(a.y + a.height, b.y + b.height)

    inter = max(0.0, x2 - x1) * max(0.0, y2 - y1)
    union = a.area + b.area - inter
    return inter / union if union > 0 else 0.0


def iou_one_to_many(box: np.ndarray, boxes: np.ndarray) -> np.ndarray:
    """
    IoU of one xywh box against boxes shape (N, 4) in xywh. Non-positive unions give 0.
    """
    xx1 = np.maximum(box[0], boxes[:, 0])
    yy1 = np.maximum(box[1], boxes[:, 1])
    xx2 = np.minimum(box[0] + box[2], boxes[:, 0] + boxes[:, 2])
    yy2 = np.minimum(box[1] + box[3], boxes[:, 1] + boxes[:, 3])

    inter = np.maximum(0.0, xx2 - xx1) * np.maximum(0.0, yy2 - yy1)
    union = box[2] * box[3] + boxes[:, 2] * boxes[:, 3] - inter
    out = np.zeros_like(inter, dtype=np.float64)
    np.divide(inter, union, out=out, where=union > 0)
    return out


def confidence_order(scores: np.ndarray, source_indices: Optional[np.ndarray] = None) -> np.ndarray:
    """
    Positions sorted by (score desc, source index asc). Ties never depend on sort stability.
    """
    scores = np.asarray(scores, dtype=np.float64)
    if source_indices is None:
        source_indices = np.arange(scores.shape[0])
    # lexsort: last key is primary.
    return np.lexsort((np.asarray(source_indices), -scores))


def nms(
    boxes: np.ndarray,
    scores: np.ndarray,
    cfg: NMSConfig,
    source_indices: Optional[np.ndarray] = None,
) -> np.ndarray:
    """
    Greedy NMS. Expects boxes shape (N, 4) in xywh and scores shape (N,).
    Returns positions of the kept boxes in acceptance order.
    """

    boxes = np.asarray(boxes, dtype=np.float64).reshape(-1, 4)
    if boxes.shape[0] == 0:
        return np.empty((0,), dtype=np.int64)

    order = confidence_order(scores, source_indices)
    keep = []

    while order.size > 0:
        if cfg.max_detections is not None and len(keep) >= cfg.max_detections:
            break
        i = order[0]
        keep.append(i)

        # Everything still in `order` is unsuppressed; drop the ones this box covers.
        iou = iou_one_to_many(boxes[i], boxes[order[1:]])
        order = order[1:][iou <= cfg.iou_threshold]

    return np.array(keep, dtype=np.int64)


def suppress(candidates: Sequence[DetectionCandidate], cfg: NMSConfig = NMSConfig()) -> List[PoseResult]:
    """
    Run NMS over decoded candidates and return their poses, highest confidence first.
    The returned PoseResult objects are the candidates' own instances.
    """
    if not candidates:
        return []

    boxes = np.array([c.pose.box.as_xywh() for c in candidates], dtype=np.float64)
    scores = np.array([c.confidence for c in candidates], dtype=np.float64)
    sources = np.array([c.source_index for c in candidates], dtype=np.int64)

    keep = nms(boxes, scores, cfg, source_indices=sources)
    return [candidates[int(i)].pose for i in keep]
