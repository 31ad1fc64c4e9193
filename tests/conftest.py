"""Shared fixtures for specdriven tests.

File handling in tests:
- Use tmp_path for any directory or file creation so tests are isolated and cleaned up.
- Use specdriven.io_utils read_text/write_text for consistent UTF-8 I/O.
- Use the in-memory storage fixture when a test only needs the Storage capability.
"""

from __future__ import annotations

import pytest

from specdriven.tasks.model import Phase, Plan, Task, TaskStatus, TaskType


SAMPLE_PLAN = """\
# Implementation Plan: User Auth

> Total: 4 tasks | Done: 1 | In Progress: 0 | Blocked: 1

Adds password login and sessions.

## Phase 1: Setup

### [x] Task 1.1: Create user model

- **Status**: done
- **Type**: implement
- **Priority**: 1
- **Files**: src/models/user.py

Create the User entity with validation.

### [ ] Task 1.2: Write user model tests

- **Status**: pending
- **Type**: test
- **Priority**: 2
- **Depends On**: 1.1

## Phase 2: Sessions

### [ ] Task 2.1: Session store

- **Status**: blocked
- **Type**: implement
- **Priority**: 1
- **Implements**: DES-2, REQ-3.1
- **Depends On**: 1.1, 1.2

Keep sessions in Redis.
Expire after 30 minutes.

### [ ] Task 2.2: Login endpoint

- **Status**: pending
- **Priority**: 3
- **Estimate**: M
- **Depends On**: 2.1
"""


class MemoryStorage:
    """Dict-backed Storage used to exercise the plan store without a disk."""

    def __init__(self, files: dict[str, str] | None = None) -> None:
        self.files: dict[str, str] = dict(files or {})
        self.dirs: set[str] = set()
        self.writes: list[str] = []

    def exists(self, path: str) -> bool:
        return path in self.files or path in self.dirs

    def read_text(self, path: str) -> str:
        return self.files[path]

    def write_text(self, path: str, content: str) -> None:
        self.files[path] = content
        self.writes.append(path)

    def create_directory(self, path: str) -> None:
        self.dirs.add(path)


def _make_task(
    id: str,
    title: str = "",
    status: TaskStatus = TaskStatus.PENDING,
    depends_on: list[str] | None = None,
    priority: int = 99,
    type: TaskType = TaskType.IMPLEMENT,
) -> Task:
    return Task(
        id=id,
        title=title or f"Task {id}",
        status=status,
        depends_on=depends_on or [],
        priority=priority,
        type=type,
    )


def _make_plan(tasks: list[Task], plan_id: str = "test") -> Plan:
    """Group tasks into phases by the first component of their id."""
    plan = Plan(plan_id=plan_id, name="Test Plan")
    for t in tasks:
        phase_id = int(t.id.split(".")[0])
        phase = plan.get_phase(phase_id)
        if phase is None:
            phase = Phase(id=phase_id, name=f"Phase {phase_id}")
            plan.phases.append(phase)
        phase.task_ids.append(t.id)
        plan.tasks[t.id] = t
    plan.refresh_metadata()
    return plan


@pytest.fixture
def make_task():
    """Factory fixture that creates Task instances."""
    return _make_task


@pytest.fixture
def make_plan():
    """Factory fixture that creates Plan instances."""
    return _make_plan


@pytest.fixture
def sample_text() -> str:
    return SAMPLE_PLAN


@pytest.fixture
def memory_storage():
    """Factory fixture that creates MemoryStorage instances."""
    return MemoryStorage
