"""Plan store: one task document per plan id, read and written through a Storage.

Each call runs a full read -> parse -> mutate -> serialize -> write cycle.
There is no locking; callers that update the same plan concurrently must
serialize those cycles themselves.
"""

from __future__ import annotations

import posixpath

from specdriven import log
from specdriven.config import Config
from specdriven.storage import Storage
from specdriven.tasks.checklist import parse_checklist
from specdriven.tasks.graph import get_next_actionable
from specdriven.tasks.model import Plan, Task, TaskStatus
from specdriven.tasks.parser import parse
from specdriven.tasks.serializer import serialize
from specdriven.tasks.transitions import coerce_status, set_status


class PlanStore:
    def __init__(self, storage: Storage, cfg: Config | None = None) -> None:
        self.storage = storage
        self.cfg = cfg or Config()

    def path_for(self, plan_id: str) -> str:
        return self.cfg.plan_path(plan_id)

    def exists(self, plan_id: str) -> bool:
        return self.storage.exists(self.path_for(plan_id))

    def load(self, plan_id: str) -> Plan | None:
        """Parse the stored document for *plan_id*, or ``None`` if there is none."""
        path = self.path_for(plan_id)
        if not self.storage.exists(path):
            log.debug(f"No task document at {path}")
            return None
        return parse(self.storage.read_text(path), plan_id)

    def save(self, plan: Plan) -> str:
        """Serialize *plan* to its document path and return that path."""
        path = self.path_for(plan.plan_id)
        parent = posixpath.dirname(path)
        if parent and not self.storage.exists(parent):
            self.storage.create_directory(parent)
        self.storage.write_text(path, serialize(plan))
        log.debug(f"Wrote {path}")
        return path

    def update_status(
        self, plan_id: str, task_id: str, status: TaskStatus | str
    ) -> Task | None:
        """Apply one status change and write the plan back.

        Returns ``None`` (and writes nothing) when the plan or task is missing.
        """
        new_status = coerce_status(status)
        plan = self.load(plan_id)
        if plan is None:
            return None
        task = set_status(plan, task_id, new_status)
        if task is None:
            return None
        self.save(plan)
        return task

    def next_task(self, plan_id: str) -> Task | None:
        plan = self.load(plan_id)
        if plan is None:
            return None
        return get_next_actionable(plan)

    def import_checklist(self, plan_id: str, text: str) -> Plan:
        """Convert a checklist-dialect document and store it as *plan_id*."""
        plan = parse_checklist(text, plan_id)
        self.save(plan)
        return plan
