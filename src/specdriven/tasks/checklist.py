"""Import plans written in the checkbox checklist dialect.

The plan generator emits nested checklists rather than the canonical
heading format::

    - [ ] 1. Setup
      - [ ] 1.1 Create user model
        - Add validation
        - _Implements: DES-1, Requirements 1.1_
        - _Depends On: 1.0_

Top-level numbered items become phases, nested numbered items become tasks
of the nearest preceding phase. The checkbox sets the status (``[x]`` done,
``[~]`` in-progress, ``[ ]`` pending) unless a ``_Status: ..._`` bullet says
otherwise. Headings that follow the checklist (``## Notes`` and so on) are
carried into the plan preamble.
"""

from __future__ import annotations

import re

from specdriven.tasks.fields import lookup
from specdriven.tasks.model import Phase, Plan, Task, TaskStatus
from specdriven.tasks.parser import (
    MARK_STATUS,
    TITLE_RE,
    add_diagnostic,
    clean_block,
    resolve_dependencies,
)

ITEM_RE = re.compile(r"^[ \t]*[-*]\s+\[(?P<mark>[ xX~])\]\s+(?P<num>\S+)\s*(?P<title>.*?)\s*$")
NUM_RE = re.compile(r"^(?P<id>\d+(?:\.\d+)*)\.?$")
BULLET_RE = re.compile(r"^[ \t]*[-*]\s+(?P<text>.*?)\s*$")
META_RE = re.compile(r"^_(?P<label>[^_:]+):\s*(?P<value>.*?)_$")
HEADING_RE = re.compile(r"^#{1,6}\s")


def parse_checklist(text: str, plan_id: str) -> Plan:
    """Convert a checklist-dialect document into a :class:`Plan`."""
    reader = _ChecklistReader(plan_id)
    for lineno, line in enumerate(text.splitlines(), start=1):
        reader.feed(lineno, line)
    return reader.finish()


class _ChecklistReader:
    def __init__(self, plan_id: str) -> None:
        self.plan = Plan(plan_id=plan_id)
        self._titled = False
        self._started = False
        self._trailing = False
        self._skipping = False
        self._phase: Phase | None = None
        self._phase_mark = " "
        self._phase_line = 0
        self._phase_lines: list[str] = []
        self._task: Task | None = None
        self._task_lines: list[str] = []
        self._labels: set[str] = set()
        self._preamble: list[str] = []
        self._epilogue: list[str] = []
        self._header_lines: dict[str, int] = {}

    def feed(self, lineno: int, line: str) -> None:
        if self._trailing:
            self._epilogue.append(line)
            return

        m = ITEM_RE.match(line)
        if m:
            self._started = True
            self._item(lineno, m.group("mark"), m.group("num"), m.group("title"))
            return

        if not self._started:
            title = TITLE_RE.match(line)
            if title and not self._titled and title.group("name"):
                self._titled = True
                self.plan.name = title.group("name")
            else:
                self._preamble.append(line)
            return

        if HEADING_RE.match(line):
            self._close_phase()
            self._trailing = True
            self._epilogue.append(line)
            return

        if self._skipping:
            return
        if self._task is not None:
            self._task_body(lineno, line)
        elif self._phase is not None:
            self._phase_lines.append(_as_text(line))

    def finish(self) -> Plan:
        self._close_phase()
        plan = self.plan
        preamble = clean_block(self._preamble)
        epilogue = clean_block(self._epilogue)
        plan.preamble = "\n\n".join(p for p in (preamble, epilogue) if p)
        resolve_dependencies(plan, self._header_lines)
        plan.refresh_metadata()
        return plan

    # ── items ────────────────────────────────────────────────────

    def _item(self, lineno: int, mark: str, num: str, title: str) -> None:
        self._close_task()
        m = NUM_RE.match(num)
        if not m:
            add_diagnostic(self.plan, lineno, f"skipped checklist item without a valid id: {num}")
            self._skipping = True
            return

        self._skipping = False
        item_id = m.group("id")
        if "." not in item_id:
            self._start_phase(lineno, int(item_id), title, mark)
        else:
            self._start_task(lineno, item_id, title, mark)

    def _start_phase(self, lineno: int, phase_id: int, name: str, mark: str) -> None:
        self._close_phase()
        phase = self.plan.get_phase(phase_id)
        if phase is None:
            phase = Phase(id=phase_id, name=name)
            self.plan.phases.append(phase)
        else:
            add_diagnostic(self.plan, lineno, f"Phase {phase_id} declared twice; merged")
        self._phase = phase
        self._phase_mark = mark
        self._phase_line = lineno
        self._phase_lines = []

    def _start_task(self, lineno: int, task_id: str, title: str, mark: str) -> None:
        if task_id in self.plan.tasks:
            add_diagnostic(self.plan, lineno, f"skipped duplicate task id {task_id}")
            self._skipping = True
            return
        if self._phase is None:
            phase_id = int(task_id.split(".")[0])
            self._start_phase(lineno, phase_id, f"Phase {phase_id}", " ")

        assert self._phase is not None
        task = Task(id=task_id, title=title, status=MARK_STATUS.get(mark, TaskStatus.PENDING))
        self.plan.tasks[task_id] = task
        self._phase.task_ids.append(task_id)
        self._header_lines[task_id] = lineno
        self._task = task
        self._task_lines = []
        self._labels = set()

    def _task_body(self, lineno: int, line: str) -> None:
        task = self._task
        assert task is not None
        bullet = BULLET_RE.match(line)
        meta = META_RE.match(bullet.group("text")) if bullet else None
        spec = lookup(meta.group("label")) if meta else None
        if meta is None or spec is None:
            self._task_lines.append(_as_text(line))
            return

        if spec.attr in self._labels:
            add_diagnostic(self.plan, lineno, f"Task {task.id}: repeated {spec.label} ignored")
            return
        self._labels.add(spec.attr)
        try:
            setattr(task, spec.attr, spec.parse(meta.group("value")))
        except ValueError as exc:
            add_diagnostic(self.plan, lineno, f"Task {task.id}: {exc}; using default")

    # ── closing ──────────────────────────────────────────────────

    def _close_task(self) -> None:
        if self._task is not None:
            self._task.description = clean_block(self._task_lines)
            self._task = None

    def _close_phase(self) -> None:
        self._close_task()
        phase = self._phase
        if phase is None:
            return
        self._phase = None
        body = clean_block(self._phase_lines)
        if phase.task_ids:
            phase.notes = body
            return

        # A phase item with no subtasks (e.g. a final checkpoint) is itself the work.
        task_id = f"{phase.id}.1"
        if task_id in self.plan.tasks:
            add_diagnostic(self.plan, self._phase_line, f"skipped duplicate task id {task_id}")
            return
        self.plan.tasks[task_id] = Task(
            id=task_id,
            title=phase.name,
            description=body,
            status=MARK_STATUS.get(self._phase_mark, TaskStatus.PENDING),
        )
        phase.task_ids.append(task_id)
        self._header_lines[task_id] = self._phase_line


def _as_text(line: str) -> str:
    """Keep bullets as markdown list items, flush left."""
    bullet = BULLET_RE.match(line)
    if bullet:
        return f"- {bullet.group('text')}"
    return line.strip()
