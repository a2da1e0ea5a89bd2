"""Fixed key tables, motion models and the motion resolver."""

from .hints import KeyHint, hints_for
from .models import FIND_LEADERS, MOTION_KEYS, ListView, Motion, MotionKind, Panel
from .resolver import motion_range, resolve
from .text_objects import OBJECT_KEYS, select_text_object

__all__ = [
    "FIND_LEADERS",
    "KeyHint",
    "ListView",
    "MOTION_KEYS",
    "Motion",
    "MotionKind",
    "OBJECT_KEYS",
    "Panel",
    "hints_for",
    "motion_range",
    "resolve",
    "select_text_object",
]
