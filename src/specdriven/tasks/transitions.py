"""Status transitions with dependency cascade and metadata recomputation."""

from __future__ import annotations

from datetime import datetime, timezone

from specdriven import log
from specdriven.tasks.graph import deps_satisfied
from specdriven.tasks.model import Plan, Task, TaskStatus


class InvalidStatusError(ValueError):
    """Raised for a status value outside :class:`TaskStatus`."""

    def __init__(self, value: object) -> None:
        allowed = ", ".join(s.value for s in TaskStatus)
        super().__init__(f"Unknown status {value!r}. Valid statuses: {allowed}.")
        self.value = value


def coerce_status(value: TaskStatus | str) -> TaskStatus:
    if isinstance(value, TaskStatus):
        return value
    status = TaskStatus.parse(value) if isinstance(value, str) else None
    if status is None:
        raise InvalidStatusError(value)
    return status


def set_status(
    plan: Plan,
    task_id: str,
    status: TaskStatus | str,
    *,
    now: datetime | None = None,
) -> Task | None:
    """Move *task_id* to *status* and cascade the consequences.

    Any status may follow any other. Completing a task stamps
    ``completed_at`` (kept if it was already done) and releases blocked
    dependents whose dependencies are now all done. Returns the updated
    task, or ``None`` when *task_id* is not in the plan.

    Raises :class:`InvalidStatusError` before touching the plan if *status*
    is unknown.
    """
    new_status = coerce_status(status)
    task = plan.get_task(task_id)
    if task is None:
        log.debug(f"Task {task_id}: not found in {plan.plan_id}")
        return None

    old_status = task.status
    task.status = new_status
    if new_status == TaskStatus.DONE:
        if task.completed_at is None:
            task.completed_at = now or datetime.now(timezone.utc).replace(microsecond=0)
        release_dependents(plan, task_id)
    else:
        task.completed_at = None
    log.debug(f"Task {task_id}: {old_status.value} -> {new_status.value}")

    plan.refresh_metadata()
    return task


def release_dependents(plan: Plan, task_id: str) -> list[str]:
    """Return blocked dependents of *task_id* to pending once all their deps are done.

    Released tasks only ever go to pending, so nothing cascades further.
    """
    released: list[str] = []
    for t in plan.tasks.values():
        if t.status != TaskStatus.BLOCKED or task_id not in t.depends_on:
            continue
        if deps_satisfied(t, plan.tasks):
            t.status = TaskStatus.PENDING
            released.append(t.id)
            log.debug(f"Task {t.id}: blocked -> pending (unblocked by {task_id})")
    return released
