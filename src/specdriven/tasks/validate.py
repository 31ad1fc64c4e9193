"""Plan validation: structure, references and dependency cycles."""

from __future__ import annotations

from specdriven import log
from specdriven.tasks.graph import detect_cycles
from specdriven.tasks.model import Plan


def validate(plan: Plan) -> list[str]:
    """Return a list of human-readable problems; empty when the plan is sound."""
    errors: list[str] = []
    if not plan.tasks:
        errors.append("No tasks in plan")

    seen_phases: set[int] = set()
    owner: dict[str, int] = {}
    for phase in plan.phases:
        if phase.id in seen_phases:
            errors.append(f"Duplicate phase id: {phase.id}")
        seen_phases.add(phase.id)
        for tid in phase.task_ids:
            if tid not in plan.tasks:
                errors.append(f"Phase {phase.id} lists unknown task {tid}")
            elif tid in owner:
                errors.append(f"Task {tid} listed in phase {owner[tid]} and phase {phase.id}")
            else:
                owner[tid] = phase.id

    for task in plan.tasks.values():
        if not task.title:
            errors.append(f"Task {task.id}: missing title")
        if task.id not in owner:
            errors.append(f"Task {task.id} is not listed in any phase")
        for dep in task.depends_on:
            if dep == task.id:
                errors.append(f"Task {task.id}: depends on itself")
            elif dep not in plan.tasks:
                errors.append(f"Task {task.id}: unknown dependency {dep}")

    for cycle in detect_cycles(plan.task_list()):
        if len(cycle) > 2:
            errors.append(f"Dependency cycle: {' -> '.join(cycle)}")

    return errors


def validate_and_report(plan: Plan) -> bool:
    """Log parse diagnostics and validation errors. Return ``True`` if valid."""
    for diag in plan.diagnostics:
        log.warn(f"{plan.plan_id}: {diag}")

    errors = validate(plan)
    if not errors:
        log.success(f"{plan.plan_id}: {len(plan.tasks)} tasks, no problems found")
        return True

    log.error(f"{plan.plan_id}: {len(errors)} problem(s)")
    for err in errors:
        log.error(f"  {err}")
    return False
