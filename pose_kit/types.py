from dataclasses import dataclass
from typing import List, Tuple

from .skeleton import NUM_KEYPOINTS, keypoint_index


@dataclass(frozen=True)
class BoundingBox:
    """
    Axis-aligned box in source-image pixels, top-left origin.

    Width/height may be negative when the model emits a degenerate box; such
    values are carried through unchanged.
    """

    x: float
    y: float
    width: float
    height: float

    @property
    def area(self) -> float:
        return self.width * self.height

    def as_xywh(self) -> Tuple[float, float, float, float]:
        return self.x, self.y, self.width, self.height

    def as_xyxy(self) -> Tuple[float, float, float, float]:
        return self.x, self.y, self.x + self.width, self.y + self.height


@dataclass(frozen=True)
class Keypoint:
    x: float
    y: float
    confidence: float


@dataclass(frozen=True)
class PoseResult:
    """
    One detected person: box, detection confidence and the 17 COCO keypoints
    in model channel order (see `skeleton.KEYPOINT_NAMES`).
    """

    box: BoundingBox
    confidence: float
    keypoints: Tuple[Keypoint, ...]

    def __post_init__(self) -> None:
        if not isinstance(self.keypoints, tuple):
            object.__setattr__(self, "keypoints", tuple(self.keypoints))
        if len(self.keypoints) != NUM_KEYPOINTS:
            raise ValueError(f"PoseResult needs {NUM_KEYPOINTS} keypoints, got {len(self.keypoints)}")

    def keypoint(self, name: str) -> Keypoint:
        return self.keypoints[keypoint_index(name)]

    def visible_keypoints(self, threshold: float) -> List[Tuple[int, Keypoint]]:
        return [(i, kp) for i, kp in enumerate(self.keypoints) if kp.confidence >= threshold]


@dataclass(frozen=True)
class DetectionCandidate:
    pose: PoseResult
    source_index: int

    @property
    def confidence(self) -> float:
        return self.pose.confidence
