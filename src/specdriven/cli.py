"""specdriven CLI: inspect and update task plans from the terminal.

Installed as ``specdriven`` console_script via pipx / pip.
"""

from __future__ import annotations

import json
import sys
from pathlib import Path

import click
from rich.markup import escape

from specdriven import __version__
from specdriven.config import Config
from specdriven.io_utils import read_text
from specdriven.storage import LocalStorage
from specdriven.store import PlanStore
from specdriven.tasks.model import Plan, TaskStatus


# ── Custom Click group that resolves command aliases ─────────────────

class SpecdrivenGroup(click.Group):
    """Accept short aliases for the common commands."""

    _ALIASES: dict[str, str] = {
        "ls": "show",
        "status": "set-status",
        "validate": "check",
        "format": "fmt",
    }

    def get_command(self, ctx: click.Context, cmd_name: str) -> click.Command | None:
        return super().get_command(ctx, self._ALIASES.get(cmd_name, cmd_name))


CONTEXT_SETTINGS = dict(help_option_names=["-h", "--help"])

STATUS_STYLE: dict[TaskStatus, str] = {
    TaskStatus.PENDING: "white",
    TaskStatus.IN_PROGRESS: "yellow",
    TaskStatus.BLOCKED: "red",
    TaskStatus.DONE: "green",
    TaskStatus.SKIPPED: "dim",
}


@click.group(cls=SpecdrivenGroup, context_settings=CONTEXT_SETTINGS)
@click.option("--root", default=".", type=click.Path(file_okay=False), help="Workspace root")
@click.option("--specs-dir", default="", help="Spec directory relative to root (default: .spec/changes)")
@click.option("-v", "--verbose", is_flag=True, help="Show debug output")
@click.version_option(__version__, prog_name="specdriven")
@click.pass_context
def main(ctx: click.Context, root: str, specs_dir: str, verbose: bool) -> None:
    """specdriven — task graphs for spec-driven development.

    Each plan lives at <specs-dir>/<plan-id>/tasks.md.

    \b
    EXAMPLES:
      specdriven show user-auth                  # Phases, tasks and progress
      specdriven next user-auth                  # Next actionable task
      specdriven set-status user-auth 1.1 done   # Complete a task
      specdriven cycles user-auth                # Report dependency cycles
      specdriven import user-auth draft.md       # Convert a generated checklist
    """
    from specdriven import log as slog

    slog.set_verbose(verbose)
    cfg = Config(specs_dir=specs_dir, verbose=verbose)
    ctx.obj = PlanStore(LocalStorage(Path(root)), cfg)


def _load_plan(store: PlanStore, plan_id: str) -> Plan:
    from specdriven import log as slog

    plan = store.load(plan_id)
    if plan is None:
        slog.error(f"No task document for {plan_id} ({store.path_for(plan_id)})")
        sys.exit(1)
    for diag in plan.diagnostics:
        slog.debug(f"{plan_id}: {diag}")
    return plan


# ── Subcommands ──────────────────────────────────────────────────────


@main.command()
@click.argument("plan_id")
@click.pass_obj
def show(store: PlanStore, plan_id: str) -> None:
    """Show phases, tasks and progress for PLAN_ID."""
    from specdriven import log as slog
    from specdriven.tasks.serializer import summary_line

    plan = _load_plan(store, plan_id)
    meta = plan.metadata

    slog.console.print(f"[bold]{escape(plan.name)}[/bold] [dim]({escape(plan.plan_id)})[/dim]")
    slog.console.print(f"[dim]{escape(summary_line(meta))}[/dim]")
    for phase in plan.phases:
        slog.console.print("")
        slog.console.print(f"[bold]Phase {phase.id}:[/bold] {escape(phase.name)}")
        for tid in phase.task_ids:
            task = plan.get_task(tid)
            if task is None:
                continue
            style = STATUS_STYLE[task.status]
            line = f"  [{style}]{task.status.value:<11}[/{style}] {escape(tid)} {escape(task.title)}"
            if task.depends_on:
                line += f" [dim](after {escape(', '.join(task.depends_on))})[/dim]"
            slog.console.print(line)

    if plan.diagnostics:
        slog.console.print("")
        slog.warn(f"{len(plan.diagnostics)} parse issue(s); run 'specdriven check {plan_id}'")


@main.command("next")
@click.argument("plan_id")
@click.pass_obj
def next_task(store: PlanStore, plan_id: str) -> None:
    """Print the next actionable task of PLAN_ID."""
    from specdriven import log as slog
    from specdriven.tasks.graph import get_next_actionable

    plan = _load_plan(store, plan_id)
    task = get_next_actionable(plan)
    if task is None:
        slog.info("No actionable tasks available.")
        return
    slog.console.print(f"Next task: [cyan]{escape(task.id)}[/cyan] - {escape(task.title)}")
    if task.target_files:
        slog.console.print(f"[dim]Files: {escape(', '.join(task.target_files))}[/dim]")


@main.command("set-status")
@click.argument("plan_id")
@click.argument("task_id")
@click.argument(
    "status",
    type=click.Choice([s.value for s in TaskStatus], case_sensitive=False),
)
@click.pass_obj
def set_status_cmd(store: PlanStore, plan_id: str, task_id: str, status: str) -> None:
    """Set TASK_ID of PLAN_ID to STATUS and write the plan back."""
    from specdriven import log as slog
    from specdriven.tasks.transitions import set_status

    plan = _load_plan(store, plan_id)
    blocked = {t.id for t in plan.task_list() if t.status == TaskStatus.BLOCKED}

    task = set_status(plan, task_id, status)
    if task is None:
        slog.error(f"Task {task_id} not found in {plan_id}")
        sys.exit(1)
    store.save(plan)

    slog.success(f"Task {task_id} marked as {task.status.value}")
    released = [
        tid for tid in blocked
        if plan.tasks[tid].status == TaskStatus.PENDING
    ]
    for tid in sorted(released):
        slog.info(f"Task {tid} unblocked")


@main.command()
@click.argument("plan_id")
@click.pass_obj
def order(store: PlanStore, plan_id: str) -> None:
    """Print the tasks of PLAN_ID in dependency order."""
    from specdriven import log as slog
    from specdriven.tasks.graph import detect_cycles, topological_order

    plan = _load_plan(store, plan_id)
    tasks = plan.task_list()
    if detect_cycles(tasks):
        slog.warn("Plan has dependency cycles; order is not reliable.")
    for n, task in enumerate(topological_order(tasks), start=1):
        slog.console.print(f"{n:>3}. {escape(task.id)} {escape(task.title)} [dim]({task.status.value})[/dim]")


@main.command()
@click.argument("plan_id")
@click.pass_obj
def cycles(store: PlanStore, plan_id: str) -> None:
    """Report dependency cycles in PLAN_ID (exit 1 if any)."""
    from specdriven import log as slog
    from specdriven.tasks.graph import detect_cycles

    plan = _load_plan(store, plan_id)
    found = detect_cycles(plan.task_list())
    if not found:
        slog.success("No dependency cycles.")
        return
    for cycle in found:
        slog.error(f"Cycle: {' -> '.join(cycle)}")
    sys.exit(1)


@main.command()
@click.argument("plan_id")
@click.pass_obj
def graph(store: PlanStore, plan_id: str) -> None:
    """Print the dependency graph of PLAN_ID as JSON."""
    from specdriven.tasks.graph import dependency_graph

    plan = _load_plan(store, plan_id)
    click.echo(json.dumps(dependency_graph(plan.task_list()).to_dict(), indent=2))


@main.command()
@click.argument("plan_id")
@click.pass_obj
def check(store: PlanStore, plan_id: str) -> None:
    """Validate PLAN_ID (exit 1 on problems)."""
    from specdriven.tasks.validate import validate_and_report

    plan = _load_plan(store, plan_id)
    if not validate_and_report(plan):
        sys.exit(1)


@main.command()
@click.argument("plan_id")
@click.option("--check", "check_only", is_flag=True, help="Exit 1 if the document is not canonical; write nothing")
@click.pass_obj
def fmt(store: PlanStore, plan_id: str, check_only: bool) -> None:
    """Rewrite PLAN_ID's document in canonical form."""
    from specdriven import log as slog
    from specdriven.tasks.serializer import serialize

    plan = _load_plan(store, plan_id)
    path = store.path_for(plan_id)
    current = store.storage.read_text(path)
    canonical = serialize(plan)
    if current == canonical:
        slog.success(f"{path} already canonical")
        return
    if check_only:
        slog.error(f"{path} is not canonical")
        sys.exit(1)
    store.save(plan)
    slog.success(f"Reformatted {path}")


@main.command("import")
@click.argument("plan_id")
@click.argument("source", type=click.Path(exists=True, dir_okay=False))
@click.option("--force", is_flag=True, help="Overwrite an existing plan document")
@click.pass_obj
def import_cmd(store: PlanStore, plan_id: str, source: str, force: bool) -> None:
    """Convert a generated checklist SOURCE into PLAN_ID's task document."""
    from specdriven import log as slog

    if store.exists(plan_id) and not force:
        slog.error(f"{store.path_for(plan_id)} already exists. Use --force to overwrite.")
        sys.exit(1)

    plan = store.import_checklist(plan_id, read_text(source))
    for diag in plan.diagnostics:
        slog.warn(f"{plan_id}: {diag}")
    slog.success(
        f"Imported {plan.metadata.total_tasks} tasks in {len(plan.phases)} phases "
        f"to {store.path_for(plan_id)}"
    )
