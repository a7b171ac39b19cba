"""External command execution.

Thin wrapper around subprocess used for every helm/jx invocation so that
callers (and tests) deal with one shape of command and one error type.
"""

from __future__ import annotations

import shlex
import subprocess
from dataclasses import dataclass, field
from pathlib import Path

from .errors import CommandError


@dataclass
class Command:
    """An external command to run."""

    name: str
    args: list[str] = field(default_factory=list)
    dir: Path | None = None
    env: dict[str, str] | None = None

    @property
    def command_line(self) -> str:
        """Render the command as a shell-like string for logs and errors."""
        return " ".join([self.name] + [shlex.quote(a) for a in self.args])

    def run(self) -> str:
        """Run the command once and return its combined output.

        Returns:
            Combined stdout/stderr, stripped.

        Raises:
            CommandError: If the binary is missing or exits non-zero.
        """
        try:
            result = subprocess.run(
                [self.name] + self.args,
                capture_output=True,
                text=True,
                cwd=self.dir,
                env=self.env,
            )
        except FileNotFoundError as e:
            raise CommandError(
                f"{self.name} not found. Is {self.name} installed?",
                command_line=self.command_line,
            ) from e

        output = ((result.stdout or "") + (result.stderr or "")).strip()
        if result.returncode != 0:
            raise CommandError(
                f"command '{self.command_line}' failed (rc={result.returncode}): {output}",
                command_line=self.command_line,
                output=output,
            )
        return output

    def run_attached(self) -> None:
        """Run the command with output going straight to the terminal.

        Raises:
            CommandError: If the binary is missing or exits non-zero.
        """
        try:
            result = subprocess.run([self.name] + self.args, cwd=self.dir, env=self.env)
        except FileNotFoundError as e:
            raise CommandError(
                f"{self.name} not found. Is {self.name} installed?",
                command_line=self.command_line,
            ) from e
        if result.returncode != 0:
            raise CommandError(
                f"command '{self.command_line}' failed (rc={result.returncode})",
                command_line=self.command_line,
            )
