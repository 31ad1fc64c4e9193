"""Document serializer: :class:`Plan` -> plan markdown (inverse of the parser)."""

from __future__ import annotations

from specdriven.tasks.fields import FIELDS
from specdriven.tasks.model import Metadata, Plan, Task, TaskStatus

STATUS_MARK: dict[TaskStatus, str] = {
    TaskStatus.DONE: "x",
    TaskStatus.IN_PROGRESS: "~",
}


def serialize(plan: Plan) -> str:
    """Render *plan* in the canonical document format.

    Phases are written in stored order and tasks in the order of each
    phase's id list. Ids listed by a phase but missing from the task
    collection are skipped.
    """
    lines: list[str] = [
        f"# Implementation Plan: {plan.name}".rstrip(),
        "",
        summary_line(plan.metadata),
        "",
    ]
    if plan.preamble:
        lines += [plan.preamble, ""]

    for phase in plan.phases:
        lines += [f"## Phase {phase.id}: {phase.name}".rstrip(), ""]
        if phase.notes:
            lines += [phase.notes, ""]
        for task_id in phase.task_ids:
            task = plan.tasks.get(task_id)
            if task is not None:
                lines += [serialize_task(task), ""]

    return "\n".join(lines).rstrip("\n") + "\n"


def summary_line(meta: Metadata) -> str:
    line = (
        f"> Total: {meta.total_tasks} tasks | "
        f"Done: {meta.completed_tasks} | "
        f"In Progress: {meta.in_progress_tasks}"
    )
    if meta.blocked_tasks > 0:
        line += f" | Blocked: {meta.blocked_tasks}"
    return line


def serialize_task(task: Task) -> str:
    """Render one task block; metadata lines are omitted for empty fields."""
    mark = STATUS_MARK.get(task.status, " ")
    lines = [f"### [{mark}] Task {task.id}: {task.title}".rstrip(), ""]
    for spec in FIELDS:
        value = spec.format(getattr(task, spec.attr))
        if value:
            lines.append(f"- **{spec.label}**: {value}")
    if task.description:
        lines += ["", task.description]
    return "\n".join(lines)
