"""
Data models for resolved tasks and their outcomes.

A TaskSpec is created for every task selected in the current invocation and
discarded once executed. A TaskOutcome records how one spec ran; the
scheduler decides aggregate success from the list of outcomes.
"""

import sys
from dataclasses import dataclass, field
from typing import Any


@dataclass(frozen=True)
class RunOptions:
    """Invocation-wide values threaded into command building.

    Attributes:
        cli_name: Name the running CLI was invoked as; used in task labels
        entry_point: Path of the executing entry point, substituted for ``$0``
        dry_run: Append ``--dry-run`` to every task
        verbosity: Log verbosity counter, forwarded to self-invocations as
            ``-v`` repeated
    """

    cli_name: str = "repo-lifecycle"
    entry_point: str = field(default_factory=lambda: sys.argv[0])
    dry_run: bool = False
    verbosity: int = 0


@dataclass
class TaskSpec:
    """A fully resolved, executable task.

    Attributes:
        name: Human-readable label
        cmd: Program to execute
        args: Arguments passed to the program
        cwd: Working directory relative to the repository root
        meta: Declared task metadata merged with the owning workspace's
            ``name`` and ``slug``
    """

    name: str
    cmd: str
    args: list[str] = field(default_factory=list)
    cwd: str = "."
    meta: dict[str, Any] = field(default_factory=dict)

    @property
    def argv(self) -> list[str]:
        return [self.cmd, *self.args]

    def to_dict(self) -> dict[str, Any]:
        """JSON-serializable form used by list mode."""
        return {
            "name": self.name,
            "cmd": self.cmd,
            "args": list(self.args),
            "opts": {"cwd": self.cwd},
            "meta": dict(self.meta),
        }


@dataclass
class TaskOutcome:
    """Result of running one TaskSpec.

    Attributes:
        spec: The TaskSpec that was run
        success: True when the process exited with status 0
        exit_code: Process exit status, None if it never started or was killed
        stdout: Captured standard output
        stderr: Captured standard error
        error: Reason for failure when the process could not run to completion
        duration: Wall-clock seconds
    """

    spec: TaskSpec
    success: bool
    exit_code: int | None = None
    stdout: str = ""
    stderr: str = ""
    error: str | None = None
    duration: float = 0.0
