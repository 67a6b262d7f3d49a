from __future__ import annotations

import json
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, Optional

from .postprocess import PosePostConfig, anchor_count
from .skeleton import DISPLAY_CONFIDENCE_THRESHOLD


@dataclass(frozen=True)
class PoseConfig:
    schema_version: int = 1
    model_width: int = 640
    model_height: int = 640
    conf_threshold: float = 0.25
    iou_threshold: float = 0.45
    display_threshold: float = DISPLAY_CONFIDENCE_THRESHOLD
    max_detections: Optional[int] = None

    def __post_init__(self) -> None:
        if self.schema_version != 1:
            raise ValueError("pose config schema_version must be 1")
        if self.model_width <= 0 or self.model_height <= 0:
            raise ValueError("model_width and model_height must be > 0")
        if not 0.0 <= self.conf_threshold <= 1.0:
            raise ValueError("conf_threshold must be within [0, 1]")
        if not 0.0 <= self.iou_threshold <= 1.0:
            raise ValueError("iou_threshold must be within [0, 1]")
        if not 0.0 <= self.display_threshold <= 1.0:
            raise ValueError("display_threshold must be within [0, 1]")
        if self.max_detections is not None and self.max_detections < 0:
            raise ValueError("max_detections must be >= 0")

    @property
    def model_size(self):
        return self.model_width, self.model_height

    def post_config(self) -> PosePostConfig:
        return PosePostConfig(
            conf_threshold=self.conf_threshold,
            iou_threshold=self.iou_threshold,
            num_detections=anchor_count(self.model_width, self.model_height),
            max_detections=self.max_detections,
        )


def _require_number(payload: Dict[str, Any], key: str, default: float) -> float:
    value = payload.get(key, default)
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise ValueError(f"{key} must be a number")
    return float(value)


def _require_int(payload: Dict[str, Any], key: str, default: Optional[int]) -> Optional[int]:
    value = payload.get(key, default)
    if value is None:
        return None
    if isinstance(value, bool) or not isinstance(value, int):
        raise ValueError(f"{key} must be an integer")
    return int(value)


def load_pose_config(path: Path) -> PoseConfig:
    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"Pose config not found: {path}")
    raw = path.read_text(encoding="utf-8")
    try:
        payload = json.loads(raw)
    except json.JSONDecodeError as exc:
        raise ValueError(f"Invalid pose config JSON: {path}") from exc
    if not isinstance(payload, dict):
        raise ValueError("Pose config must be a JSON object")

    allowed = {
        "schema_version",
        "model_width",
        "model_height",
        "conf_threshold",
        "iou_threshold",
        "display_threshold",
        "max_detections",
    }
    unknown = sorted(set(payload.keys()) - allowed)
    if unknown:
        raise ValueError(f"Unknown pose config keys: {unknown}")

    defaults = PoseConfig()
    if "schema_version" not in payload:
        raise ValueError("Missing required key: schema_version")

    return PoseConfig(
        schema_version=_require_int(payload, "schema_version", None),
        model_width=_require_int(payload, "model_width", defaults.model_width),
        model_height=_require_int(payload, "model_height", defaults.model_height),
        conf_threshold=_require_number(payload, "conf_threshold", defaults.conf_threshold),
        iou_threshold=_require_number(payload, "iou_threshold", defaults.iou_threshold),
        display_threshold=_require_number(payload, "display_threshold", defaults.display_threshold),
        max_detections=_require_int(payload, "max_detections", defaults.max_detections),
    )
