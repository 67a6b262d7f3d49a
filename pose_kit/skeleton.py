from typing import Tuple

# Model channel order for the 17 COCO keypoints.
KEYPOINT_NAMES: Tuple[str, ...] = (
    "nose",
    "left_eye",
    "right_eye",
    "left_ear",
    "right_ear",
    "left_shoulder",
    "right_shoulder",
    "left_elbow",
    "right_elbow",
    "left_wrist",
    "right_wrist",
    "left_hip",
    "right_hip",
    "left_knee",
    "right_knee",
    "left_ankle",
    "right_ankle",
)

NUM_KEYPOINTS = len(KEYPOINT_NAMES)

SKELETON_CONNECTIONS: Tuple[Tuple[int, int], ...] = (
    # face
    (0, 1),
    (0, 2),
    (1, 3),
    (2, 4),
    # arms
    (5, 6),
    (5, 7),
    (7, 9),
    (6, 8),
    (8, 10),
    # torso
    (5, 11),
    (6, 12),
    (11, 12),
    # legs
    (11, 13),
    (13, 15),
    (12, 14),
    (14, 16),
)

_RED = (255, 0, 0)
_GREEN = (0, 255, 0)
_CYAN = (0, 255, 255)
_YELLOW = (255, 255, 0)
_MAGENTA = (255, 0, 255)
_BLUE = (0, 0, 255)

# RGB, one per entry of SKELETON_CONNECTIONS.
CONNECTION_COLORS: Tuple[Tuple[int, int, int], ...] = (
    _RED,
    _RED,
    _RED,
    _RED,
    _GREEN,
    _CYAN,
    _CYAN,
    _YELLOW,
    _YELLOW,
    _GREEN,
    _GREEN,
    _GREEN,
    _MAGENTA,
    _MAGENTA,
    _BLUE,
    _BLUE,
)

# Renderer-side cutoff; the decoder never thresholds keypoints.
DISPLAY_CONFIDENCE_THRESHOLD = 0.3


def keypoint_index(name: str) -> int:
    key = name.strip().lower().replace(" ", "_")
    try:
        return KEYPOINT_NAMES.index(key)
    except ValueError:
        raise KeyError(f"Unknown keypoint name: {name!r}") from None


def display_name(index: int) -> str:
    """'left_shoulder' -> 'Left Shoulder'."""
    return KEYPOINT_NAMES[index].replace("_", " ").title()
