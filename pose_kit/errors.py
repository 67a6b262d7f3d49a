class PoseError(ValueError):
    """
    Base class for precondition failures in the pose post-processing core.
    """


class InvalidInputShape(PoseError):
    """Raw output tensor does not hold `56 * num_detections` values."""


class DegenerateGeometry(PoseError):
    """Letterbox scale is not positive (zero-area source or model size)."""
