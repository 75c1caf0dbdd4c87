"""Command suggestion extraction and execution.

The system directive asks the model to answer with a JSON object holding
``explanation`` and ``command`` when a shell command fits the request.
``extract_command`` looks for that object anywhere in a response; the
match is greedy (first ``{`` to last ``}``), so prose containing literal
braces around the object makes the extraction miss.
"""

import json
import logging
import re
import subprocess
from dataclasses import dataclass
from typing import Callable, Optional

logger = logging.getLogger(__name__)

_JSON_OBJECT_RE = re.compile(r"\{[\s\S]*\}")

NEGATIVE_ANSWERS = frozenset({"n", "no"})


@dataclass
class CommandSuggestion:
    explanation: str
    command: str


@dataclass
class CommandResult:
    command: str
    returncode: Optional[int]
    output: str = ""
    error: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.error is None and self.returncode == 0


def extract_command(text: str) -> Optional[CommandSuggestion]:
    """Return the command suggestion embedded in ``text``, if any.

    A miss (no braces, invalid JSON, missing or empty fields) returns None;
    the response is then treated as plain text.
    """
    if not text:
        return None
    match = _JSON_OBJECT_RE.search(text)
    if not match:
        return None
    try:
        candidate = json.loads(match.group(0))
    except json.JSONDecodeError:
        return None
    if not isinstance(candidate, dict):
        return None

    explanation = candidate.get("explanation")
    command = candidate.get("command")
    if not (isinstance(explanation, str) and explanation):
        return None
    if not (isinstance(command, str) and command):
        return None
    return CommandSuggestion(explanation=explanation, command=command)


def execute_command(command: str, *, timeout: Optional[float] = None, cwd: Optional[str] = None) -> CommandResult:
    """Run ``command`` in a shell, capturing stdout and stderr together.

    Never raises for command failures: a nonzero exit, a timeout or a spawn
    error comes back as a failed ``CommandResult``.
    """
    logger.info("Executing command: %s", command)
    try:
        proc = subprocess.run(
            command,
            shell=True,
            cwd=cwd,
            text=True,
            encoding="utf-8",
            errors="replace",
            stdout=subprocess.PIPE,
            stderr=subprocess.STDOUT,
            timeout=timeout,
        )
    except subprocess.TimeoutExpired as e:
        output = e.output if isinstance(e.output, str) else ""
        logger.warning("Command timed out after %ss: %s", timeout, command)
        return CommandResult(command, None, output, f"Command timed out after {timeout}s")
    except OSError as e:
        logger.warning("Command could not be started: %s", e)
        return CommandResult(command, None, "", str(e))

    result = CommandResult(command, proc.returncode, proc.stdout or "")
    if proc.returncode != 0:
        result.error = f"Command failed with exit code {proc.returncode}"
        logger.info("Command exited with %s: %s", proc.returncode, command)
    return result


def is_confirmation(answer: Optional[str]) -> bool:
    """Yes/no answer with a yes default: only an explicit negative declines."""
    return (answer or "").strip().lower() not in NEGATIVE_ANSWERS


def confirm_execution(ask: Callable[[str], str], question: str = "Execute this command? [Y/n] ") -> bool:
    """Ask the user whether to run a suggested command.

    Interrupting the prompt (Ctrl+C / Ctrl+D) counts as a decline.
    """
    try:
        answer = ask(question)
    except (KeyboardInterrupt, EOFError):
        return False
    return is_confirmation(answer)
