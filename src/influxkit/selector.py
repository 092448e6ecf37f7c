"""Interactive selection through fzf, and plain text prompts."""

from __future__ import annotations

import logging
import subprocess

logger = logging.getLogger(__name__)

# fzf exit codes
_NO_MATCH = 1
_INTERRUPTED = 130


class SelectorError(Exception):
    """fzf is missing or failed."""


class FzfSelector:
    """Runs fzf over a list of candidates.

    ``select`` returns the picked lines, or an empty list when the user
    cancelled. In edit mode the text typed at the prompt is always appended
    as the last entry, so callers can accept input that matched nothing.
    """

    def __init__(self, executable: str = "fzf", height: str | None = "40%") -> None:
        self.executable = executable
        self.height = height

    def command(self, prompt: str = "", edit: bool = False, multi: bool = False) -> list[str]:
        cmd = [self.executable, "--prompt", f"{prompt}> " if prompt else "> "]
        if self.height:
            cmd += ["--height", self.height, "--reverse"]
        if multi:
            cmd.append("--multi")
        if edit:
            cmd.append("--print-query")
        return cmd

    def select(
        self, candidates: list[str], prompt: str = "", edit: bool = False, multi: bool = False
    ) -> list[str]:
        cmd = self.command(prompt, edit=edit, multi=multi)
        try:
            result = subprocess.run(
                cmd,
                input="\n".join(candidates),
                stdout=subprocess.PIPE,
                text=True,
            )
        except FileNotFoundError as e:
            raise SelectorError(f"Selector not found: {self.executable}") from e

        if result.returncode == _INTERRUPTED:
            logger.debug("Selection cancelled at %r", prompt)
            return []
        if result.returncode not in (0, _NO_MATCH):
            raise SelectorError(f"{self.executable} exited with status {result.returncode}")

        lines = result.stdout.splitlines()
        if edit:
            typed = lines[0] if lines else ""
            return lines[1:] + [typed]
        return lines


def read_input(prompt: str) -> str:
    """Read one line from the terminal. Ctrl-C or end of input gives ""."""
    try:
        return input(f"{prompt}: " if prompt else "> ").strip()
    except (EOFError, KeyboardInterrupt):
        print()
        return ""
