"""Configuration defaults, env vars, and runtime options for specdriven."""

from __future__ import annotations

import os
from dataclasses import dataclass


VERSION = "0.3.0"

DEFAULT_SPECS_DIR = ".spec/changes"
DEFAULT_TASKS_FILENAME = "tasks.md"


@dataclass
class Config:
    """Runtime configuration shared by the CLI and the plan store."""

    # Layout
    specs_dir: str = ""
    tasks_filename: str = ""

    # Misc
    verbose: bool = False

    def __post_init__(self) -> None:
        if not self.specs_dir:
            self.specs_dir = os.environ.get("SPECDRIVEN_SPECS_DIR") or DEFAULT_SPECS_DIR
        if not self.tasks_filename:
            self.tasks_filename = (
                os.environ.get("SPECDRIVEN_TASKS_FILE") or DEFAULT_TASKS_FILENAME
            )

    def plan_path(self, plan_id: str) -> str:
        """Relative path of the task document for *plan_id*."""
        return f"{self.specs_dir.rstrip('/')}/{plan_id}/{self.tasks_filename}"
