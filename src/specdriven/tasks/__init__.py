"""Task graph: parse, analyze, transition and serialize plan documents."""

from specdriven.tasks.checklist import parse_checklist
from specdriven.tasks.graph import (
    DependencyGraph,
    dependency_graph,
    detect_cycles,
    get_next_actionable,
    next_actionable_task,
    topological_order,
)
from specdriven.tasks.model import Metadata, Phase, Plan, Task, TaskStatus, TaskType
from specdriven.tasks.parser import parse
from specdriven.tasks.serializer import serialize
from specdriven.tasks.transitions import InvalidStatusError, set_status

__all__ = [
    "DependencyGraph",
    "InvalidStatusError",
    "Metadata",
    "Phase",
    "Plan",
    "Task",
    "TaskStatus",
    "TaskType",
    "dependency_graph",
    "detect_cycles",
    "get_next_actionable",
    "next_actionable_task",
    "parse",
    "parse_checklist",
    "serialize",
    "set_status",
    "topological_order",
]
