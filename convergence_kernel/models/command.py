"""Structured commands and their results."""

import shlex
from typing import Dict, List

from pydantic import BaseModel, ConfigDict, Field


class Command(BaseModel):
    """
    A command as an argument vector. Never passed through a shell by the
    kernel; values that must not show up in argv travel in `env`.
    """

    model_config = ConfigDict(frozen=True)

    argv: List[str] = Field(min_length=1)
    env: Dict[str, str] = {}                # merged over the runner's environment

    def display(self) -> str:
        """Shell-quoted argv. Environment values are never rendered."""
        text = shlex.join(self.argv)
        if self.env:
            text = " ".join(f"{key}=***" for key in sorted(self.env)) + " " + text
        return text


class CommandResult(BaseModel):
    """Status and captured output of one command invocation."""

    exit_code: int
    stdout: str = ""
    stderr: str = ""

    @property
    def error(self) -> bool:
        return self.exit_code != 0
