"""Document parser: plan markdown -> :class:`Plan`.

The reader is a single pass over the lines of the document. Headers switch
state (preamble, phase notes, task block); everything else is routed to the
block that is currently open. Problems never abort the parse: they are
recorded as :class:`Diagnostic` entries on the plan and the offending block
is skipped.
"""

from __future__ import annotations

import re

from specdriven import log
from specdriven.tasks.fields import lookup
from specdriven.tasks.model import Diagnostic, Phase, Plan, Task, TaskStatus

TITLE_RE = re.compile(r"^#\s+Implementation Plan:\s*(?P<name>.*?)\s*$")
SUMMARY_RE = re.compile(r"^>\s*Total:")
PHASE_RE = re.compile(r"^##\s+Phase\b(?P<rest>.*)$")
PHASE_REST_RE = re.compile(r"^\s+(?P<id>\d+)\s*:\s*(?P<name>.*?)\s*$")
TASK_RE = re.compile(r"^###\s+(?:\[(?P<mark>[ xX~])\]\s+)?Task\b(?P<rest>.*)$")
TASK_REST_RE = re.compile(r"^\s+(?P<id>\d+(?:\.\d+)*)\s*:\s*(?P<title>.*?)\s*$")
FIELD_RE = re.compile(r"^\s*[-*]\s+\*\*(?P<label>[^*]+)\*\*\s*:\s*(?P<value>.*?)\s*$")
FENCE_RE = re.compile(r"^\s*(?:```|~~~)")

MARK_STATUS: dict[str, TaskStatus] = {
    "x": TaskStatus.DONE,
    "X": TaskStatus.DONE,
    "~": TaskStatus.IN_PROGRESS,
}


def parse(text: str, plan_id: str) -> Plan:
    """Parse a plan document into a :class:`Plan`.

    An empty document yields a plan with no phases and no tasks. Statuses are
    taken as written: a stored ``blocked`` task whose dependencies are all done
    stays blocked until a transition releases it.
    """
    reader = _PlanReader(plan_id)
    for lineno, line in enumerate(text.splitlines(), start=1):
        reader.feed(lineno, line)
    return reader.finish()


def clean_block(lines: list[str]) -> str:
    """Join *lines*, dropping trailing whitespace and surrounding blank lines."""
    stripped = [line.rstrip() for line in lines]
    while stripped and not stripped[0]:
        stripped.pop(0)
    while stripped and not stripped[-1]:
        stripped.pop()
    return "\n".join(stripped)


def add_diagnostic(plan: Plan, line: int, message: str) -> None:
    diag = Diagnostic(line, message)
    plan.diagnostics.append(diag)
    log.debug(f"{plan.plan_id}: {diag}")


def resolve_dependencies(plan: Plan, task_lines: dict[str, int]) -> None:
    """Drop self, dangling and repeated dependency ids, with a diagnostic each."""
    for task in plan.tasks.values():
        line = task_lines.get(task.id, 0)
        kept: list[str] = []
        for dep in task.depends_on:
            if dep == task.id:
                add_diagnostic(plan, line, f"Task {task.id}: dropped dependency on itself")
            elif dep not in plan.tasks:
                add_diagnostic(plan, line, f"Task {task.id}: dropped unknown dependency {dep}")
            elif dep in kept:
                add_diagnostic(plan, line, f"Task {task.id}: dropped repeated dependency {dep}")
            else:
                kept.append(dep)
        task.depends_on = kept


class _TaskBlock:
    def __init__(self, task: Task, line: int, mark: str | None) -> None:
        self.task = task
        self.line = line
        self.mark = mark
        self.lines: list[str] = []
        self.labels: set[str] = set()
        self.in_fence = False


class _PlanReader:
    def __init__(self, plan_id: str) -> None:
        self.plan = Plan(plan_id=plan_id)
        self._seen_header = False
        self._titled = False
        self._skipping = False
        self._phase: Phase | None = None
        self._block: _TaskBlock | None = None
        self._implicit: set[int] = set()
        self._preamble: list[str] = []
        self._notes: dict[int, list[str]] = {}
        self._task_lines: dict[str, int] = {}

    # ── line routing ─────────────────────────────────────────────

    def feed(self, lineno: int, line: str) -> None:
        if self._block is not None and self._block.in_fence:
            self._task_line(lineno, line)
            return
        m = TASK_RE.match(line)
        if m:
            self._start_task(lineno, m.group("rest"), m.group("mark"))
            return
        m = PHASE_RE.match(line)
        if m:
            self._start_phase(lineno, m.group("rest"))
            return

        if not self._seen_header:
            self._preamble_line(line)
        elif self._skipping:
            return
        elif self._block is not None:
            self._task_line(lineno, line)
        elif self._phase is not None:
            self._notes.setdefault(self._phase.id, []).append(line)

    def finish(self) -> Plan:
        """Close the open block and resolve dependencies. Statuses are left as parsed."""
        self._close_task()
        plan = self.plan
        plan.preamble = clean_block(self._preamble)
        for phase in plan.phases:
            phase.notes = clean_block(self._notes.get(phase.id, []))
        resolve_dependencies(plan, self._task_lines)
        plan.refresh_metadata()
        return plan

    # ── headers ──────────────────────────────────────────────────

    def _start_phase(self, lineno: int, rest: str) -> None:
        self._close_task()
        self._seen_header = True
        m = PHASE_REST_RE.match(rest)
        if not m:
            add_diagnostic(self.plan, lineno, f"skipped malformed phase header: Phase{rest}")
            self._skipping = True
            return

        self._skipping = False
        phase_id = int(m.group("id"))
        name = m.group("name")
        phase = self.plan.get_phase(phase_id)
        if phase is None:
            phase = Phase(id=phase_id, name=name)
            self.plan.phases.append(phase)
        elif phase_id in self._implicit:
            self._implicit.discard(phase_id)
            phase.name = name
        else:
            add_diagnostic(self.plan, lineno, f"Phase {phase_id} declared twice; merged")
        self._phase = phase

    def _start_task(self, lineno: int, rest: str, mark: str | None) -> None:
        self._close_task()
        self._seen_header = True
        m = TASK_REST_RE.match(rest)
        if not m:
            add_diagnostic(self.plan, lineno, f"skipped task header without a valid id: Task{rest}")
            self._skipping = True
            return

        task_id = m.group("id")
        if task_id in self.plan.tasks:
            add_diagnostic(self.plan, lineno, f"skipped duplicate task id {task_id}")
            self._skipping = True
            return

        self._skipping = False
        task = Task(id=task_id, title=m.group("title"))
        self._block = _TaskBlock(task, lineno, mark)
        self._task_lines[task_id] = lineno

        phase = self._current_phase()
        phase.task_ids.append(task_id)
        self.plan.tasks[task_id] = task

    def _current_phase(self) -> Phase:
        if self._phase is None:
            # Tasks ahead of any phase header land in phase 1.
            phase = self.plan.get_phase(1)
            if phase is None:
                phase = Phase(id=1, name="Phase 1")
                self.plan.phases.append(phase)
                self._implicit.add(1)
            self._phase = phase
        return self._phase

    # ── bodies ───────────────────────────────────────────────────

    def _preamble_line(self, line: str) -> None:
        m = TITLE_RE.match(line)
        if m and not self._titled and m.group("name"):
            self._titled = True
            self.plan.name = m.group("name")
            return
        if SUMMARY_RE.match(line):
            return
        self._preamble.append(line)

    def _task_line(self, lineno: int, line: str) -> None:
        block = self._block
        assert block is not None
        # Fenced code in a description is text, even when it looks like metadata.
        if FENCE_RE.match(line):
            block.in_fence = not block.in_fence
            block.lines.append(line)
            return
        if block.in_fence:
            block.lines.append(line)
            return
        m = FIELD_RE.match(line)
        spec = lookup(m.group("label")) if m else None
        if m is None or spec is None:
            block.lines.append(line)
            return

        task = block.task
        if spec.attr in block.labels:
            add_diagnostic(self.plan, lineno, f"Task {task.id}: repeated {spec.label} ignored")
            return
        block.labels.add(spec.attr)
        try:
            value = spec.parse(m.group("value"))
        except ValueError as exc:
            add_diagnostic(self.plan, lineno, f"Task {task.id}: {exc}; using default")
            return
        setattr(task, spec.attr, value)

    def _close_task(self) -> None:
        block = self._block
        if block is None:
            return
        self._block = None
        task = block.task
        task.description = clean_block(block.lines)
        if "status" not in block.labels and block.mark in MARK_STATUS:
            task.status = MARK_STATUS[block.mark]
