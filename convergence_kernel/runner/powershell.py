"""PowerShell command construction with escaped literals."""

from typing import Dict, Optional

from convergence_kernel.models.command import Command

POWERSHELL_EXE = "powershell.exe"

# Same flags a non-interactive agent uses so profiles and prompts never interfere.
POWERSHELL_FLAGS = [
    "-NoLogo",
    "-NonInteractive",
    "-NoProfile",
    "-ExecutionPolicy", "Bypass",
    "-InputFormat", "None",
]

# PowerShell treats the typographic single quotes as quote characters too.
_SINGLE_QUOTES = "'‘’‚‛"


def ps_quote(value: str) -> str:
    """Render `value` as a single-quoted PowerShell literal (no expansion)."""
    escaped = "".join(ch * 2 if ch in _SINGLE_QUOTES else ch for ch in str(value))
    return f"'{escaped}'"


def ps_env(name: str) -> str:
    """Expression reading an environment variable of the child process."""
    return f"$env:{name}"


def powershell_command(script: str, env: Optional[Dict[str, str]] = None) -> Command:
    return Command(argv=[POWERSHELL_EXE, *POWERSHELL_FLAGS, "-Command", script], env=dict(env or {}))
