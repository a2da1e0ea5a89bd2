"""Mode manager, input state, operator pipeline and the concrete modes."""

from .base_mode import KeyInput, Mode, ModeBus, ModeContext, ModeResult
from .state import (
    CommandPrefill,
    EditorMode,
    InputState,
    InsertTarget,
    Operator,
    OperatorKind,
)
from .selection import VisualSelection
from .macros import MacroRecorder
from .operator_pipeline import ExecutionPlan, OperatorPipeline
from .normal_mode import NormalMode
from .pending_mode import PendingMode
from .visual_mode import VisualMode
from .insert_mode import InsertMode
from .command_mode import CommandMode
from .search_mode import SearchMode
from .mode_manager import ModeManager
from .factory import create_manager

__all__ = [
    "CommandMode",
    "CommandPrefill",
    "EditorMode",
    "ExecutionPlan",
    "InputState",
    "InsertMode",
    "InsertTarget",
    "KeyInput",
    "MacroRecorder",
    "Mode",
    "ModeBus",
    "ModeContext",
    "ModeManager",
    "ModeResult",
    "NormalMode",
    "Operator",
    "OperatorKind",
    "OperatorPipeline",
    "PendingMode",
    "SearchMode",
    "VisualMode",
    "VisualSelection",
    "create_manager",
]
