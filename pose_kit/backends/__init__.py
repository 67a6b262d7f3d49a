"""
Inference backends for pose_kit.

Kept apart so pre/post-processing can be used without installing an
inference runtime.
"""

from __future__ import annotations

__all__ = []
