"""Task, Phase and Plan data models shared by the parser, serializer and analyzer."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum


class TaskStatus(str, Enum):
    PENDING = "pending"
    IN_PROGRESS = "in-progress"
    BLOCKED = "blocked"
    DONE = "done"
    SKIPPED = "skipped"

    @classmethod
    def parse(cls, value: str) -> TaskStatus | None:
        """Return the status named by *value*, or ``None`` if it is unknown."""
        try:
            return cls(value.strip().lower())
        except ValueError:
            return None


class TaskType(str, Enum):
    IMPLEMENT = "implement"
    TEST = "test"
    DOCUMENT = "document"
    REFACTOR = "refactor"
    REVIEW = "review"

    @classmethod
    def parse(cls, value: str) -> TaskType | None:
        try:
            return cls(value.strip().lower())
        except ValueError:
            return None


DEFAULT_PRIORITY = 99


@dataclass
class Task:
    id: str
    title: str = ""
    description: str = ""
    status: TaskStatus = TaskStatus.PENDING
    type: TaskType = TaskType.IMPLEMENT
    priority: int = DEFAULT_PRIORITY
    estimate: str | None = None
    target_files: list[str] = field(default_factory=list)
    implements: list[str] = field(default_factory=list)
    depends_on: list[str] = field(default_factory=list)
    completed_at: datetime | None = None


@dataclass
class Phase:
    id: int
    name: str
    task_ids: list[str] = field(default_factory=list)
    notes: str = ""


@dataclass
class Metadata:
    """Summary counters, always derived from the task collection."""

    total_tasks: int = 0
    completed_tasks: int = 0
    in_progress_tasks: int = 0
    blocked_tasks: int = 0
    pending_tasks: int = 0
    skipped_tasks: int = 0
    tdd_enabled: bool = False

    @classmethod
    def from_tasks(cls, tasks: list[Task]) -> Metadata:
        def count(status: TaskStatus) -> int:
            return sum(1 for t in tasks if t.status == status)

        return cls(
            total_tasks=len(tasks),
            completed_tasks=count(TaskStatus.DONE),
            in_progress_tasks=count(TaskStatus.IN_PROGRESS),
            blocked_tasks=count(TaskStatus.BLOCKED),
            pending_tasks=count(TaskStatus.PENDING),
            skipped_tasks=count(TaskStatus.SKIPPED),
            tdd_enabled=_tests_come_first(tasks),
        )


def _tests_come_first(tasks: list[Task]) -> bool:
    """True when some test task outranks the first task that depends on it."""
    for t in tasks:
        if t.type != TaskType.TEST:
            continue
        dependent = next((d for d in tasks if t.id in d.depends_on), None)
        threshold = dependent.priority if dependent else 999
        if t.priority < threshold:
            return True
    return False


@dataclass
class Diagnostic:
    """A recoverable problem found while reading a plan document."""

    line: int
    message: str

    def __str__(self) -> str:
        if self.line:
            return f"line {self.line}: {self.message}"
        return self.message


@dataclass
class Plan:
    """The task graph for one spec: phases, tasks keyed by id, derived metadata."""

    plan_id: str
    name: str = ""
    phases: list[Phase] = field(default_factory=list)
    tasks: dict[str, Task] = field(default_factory=dict)
    metadata: Metadata = field(default_factory=Metadata)
    preamble: str = ""
    diagnostics: list[Diagnostic] = field(default_factory=list, compare=False)

    def __post_init__(self) -> None:
        if not self.name:
            self.name = self.plan_id

    def task_list(self) -> list[Task]:
        return list(self.tasks.values())

    def get_task(self, task_id: str) -> Task | None:
        return self.tasks.get(task_id)

    def get_phase(self, phase_id: int) -> Phase | None:
        for p in self.phases:
            if p.id == phase_id:
                return p
        return None

    def phase_of(self, task_id: str) -> Phase | None:
        for p in self.phases:
            if task_id in p.task_ids:
                return p
        return None

    def refresh_metadata(self) -> Metadata:
        self.metadata = Metadata.from_tasks(self.task_list())
        return self.metadata
