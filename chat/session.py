"""Interactive chat session -- the directive dispatcher and turn loop.

State machine::

    AWAITING_INPUT -> DISPATCHING -> EXECUTING_DIRECTIVE -> AWAITING_INPUT
                                  -> INVOKING_MODEL      -> AWAITING_INPUT
    any state      -> CLOSED        (.exit, Ctrl+C, Ctrl+D)

Every piece of per-process state (config, history, temperature, flags) lives
on a ``SessionContext`` that the CLI builds at startup and hands to the
session. One line of input is processed at a time; the prompt is not shown
again until the current turn has finished.

Turn semantics: the user message is appended and persisted *before* the
model call. If the call fails, that user message stays in the history with
no assistant reply after it.
"""

import logging
import os
import time
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Any, Callable, Dict, List, Optional

from prompt_toolkit import PromptSession
from prompt_toolkit.formatted_text import ANSI
from prompt_toolkit.history import FileHistory

from chat.command_runner import (
    CommandResult,
    CommandSuggestion,
    confirm_execution,
    execute_command,
    extract_command,
)
from chat.display import Display
from chat.errors import ApiError, AuthError, FileContextError
from chat.file_context import get_file_type, load_file_context
from chat.history_store import HistoryStore, render_transcript
from chat.prompt_assembler import prepare_messages
from chat.transport import CompletionClient
from shelly_cli.config import save_config
from shelly_cli.models import PREDEFINED_MODELS, resolve_model

logger = logging.getLogger(__name__)

CONTINUE_PROMPT = "Please continue from your last response."
FILE_PROMPT = "Here's the content of the file {path}:\n\n{content}\n\nPlease analyze this file."


class SessionState(Enum):
    AWAITING_INPUT = "awaiting_input"
    DISPATCHING = "dispatching"
    EXECUTING_DIRECTIVE = "executing_directive"
    INVOKING_MODEL = "invoking_model"
    CLOSED = "closed"


@dataclass
class SessionContext:
    """Everything a session reads or mutates, constructed once at startup."""

    config: Dict[str, Any]
    store: HistoryStore
    history: List[Dict[str, Any]] = field(default_factory=list)
    config_path: Optional[Path] = None
    temperature: float = 0.7
    stream: bool = True
    auto_execute: bool = False

    def masked_config(self) -> Dict[str, Any]:
        config = dict(self.config)
        key = config.get("api_key") or ""
        config["api_key"] = f"{key[:8]}..." if key else ""
        return config


def make_prompt_reader(history_path: Optional[Path] = None) -> Callable[[str], str]:
    """Build the default line reader on a prompt_toolkit session."""
    if history_path:
        Path(history_path).parent.mkdir(parents=True, exist_ok=True)
        session = PromptSession(history=FileHistory(str(history_path)))
    else:
        session = PromptSession()

    def ask(message: str) -> str:
        return session.prompt(ANSI(f"\x1b[32m{message}\x1b[0m"))

    return ask


class ChatSession:
    """Drives one conversation over a ``SessionContext``.

    Args:
        context: Session state (config, history, flags).
        client: Completion client; built from ``context.config`` if omitted.
        display: Output sink; a rich console on stdout if omitted.
        ask: Line reader taking a prompt string. Raises ``EOFError`` or
            ``KeyboardInterrupt`` to end the session.
        runner: Command executor, ``execute_command`` by default.
    """

    def __init__(
        self,
        context: SessionContext,
        client: Optional[CompletionClient] = None,
        display: Optional[Display] = None,
        ask: Optional[Callable[[str], str]] = None,
        runner: Callable[[str], CommandResult] = execute_command,
    ):
        self.context = context
        self.client = client or CompletionClient(context.config)
        self.display = display or Display()
        self.ask = ask or make_prompt_reader()
        self.runner = runner
        self.state = SessionState.AWAITING_INPUT

        self._directives: Dict[str, Callable[[str], None]] = {
            ".exit": self._exit,
            ".clear": self._clear,
            ".help": self._help,
            ".history": self._history,
            ".debug": self._debug,
            ".file": self._file,
            ".model": self._model,
            ".temp": self._temp,
            ".save": self._save,
            ".continue": self._continue,
        }

    # -- Loop -----------------------------------------------------------------

    @property
    def closed(self) -> bool:
        return self.state is SessionState.CLOSED

    def run(self, show_banner: bool = True) -> None:
        """Read and handle lines until the session is closed."""
        if show_banner:
            self.display.banner(self.context.config["model"])
        self._debug_history(f"Current history ({len(self.context.history)} messages)")

        self.state = SessionState.AWAITING_INPUT
        while not self.closed:
            try:
                line = self.ask("You: ")
            except (KeyboardInterrupt, EOFError):
                self.display.newline()
                self.close()
                break
            self.handle_line(line)

    def close(self) -> None:
        """Flush the history and enter the terminal state."""
        if self.closed:
            return
        self._persist()
        self.state = SessionState.CLOSED
        logger.debug("Session closed")

    def handle_line(self, line: str) -> SessionState:
        """Process one line of input and return the resulting state.

        Non-fatal errors are reported here, at the turn boundary. Only
        ``AuthError`` escapes.
        """
        text = (line or "").strip()
        if not text:
            return self.state

        self.state = SessionState.DISPATCHING
        name, _, arg = text.partition(" ")
        handler = self._directives.get(name)
        try:
            if handler:
                self.state = SessionState.EXECUTING_DIRECTIVE
                handler(arg.strip())
            else:
                self._message(text)
        except AuthError:
            raise
        except Exception as e:
            logger.exception("Unhandled error while processing input")
            self.display.error(f"Error: {e}")

        if not self.closed:
            self.state = SessionState.AWAITING_INPUT
        return self.state

    # -- Turns ----------------------------------------------------------------

    def run_once(self, query: str) -> bool:
        """One-shot mode: send ``query`` as a single turn.

        Returns False without calling the model when the query is empty.
        """
        if not query or not query.strip():
            self.display.error("Empty query. Please provide a question or prompt.")
            return False
        self._message(query)
        self.state = SessionState.AWAITING_INPUT
        return True

    def _message(self, text: str) -> None:
        self.context.history.append({"role": "user", "content": text})
        self._persist()
        self.invoke_model()

    def invoke_model(self) -> bool:
        """Send the history to the model and record the reply.

        Returns True when an assistant message was appended.
        """
        self.state = SessionState.INVOKING_MODEL
        ctx = self.context
        self._debug_history(f"Sending {len(ctx.history)} messages to API")
        messages = prepare_messages(ctx.history)

        try:
            if ctx.stream:
                self.display.assistant_prefix()
                try:
                    response = self.client.stream(messages, ctx.temperature, on_delta=self.display.write)
                finally:
                    self.display.newline()
            else:
                with self.display.status("[yellow]Assistant: (thinking...)[/yellow]"):
                    response = self.client.complete(messages, ctx.temperature)
        except ApiError as e:
            logger.warning("Model call failed: %s", e)
            self.display.error(f"Error: {e}")
            return False

        self.process_response(response)
        ctx.history.append({"role": "assistant", "content": response})
        self._persist()
        return True

    def process_response(self, response: str) -> Optional[CommandSuggestion]:
        """Show the response and handle an embedded command suggestion.

        In streaming mode the text is already on screen, so only the
        detected command is highlighted.
        """
        suggestion = extract_command(response)
        streamed = self.context.stream

        if suggestion is None:
            if not streamed:
                self.display.assistant(response)
            return None

        if not streamed:
            self.display.assistant(response)
        self.display.command(suggestion.command, detected=streamed)

        if self.context.auto_execute:
            self.display.success("\nAuto-executing command...")
            self.run_command(suggestion.command)
        elif confirm_execution(self.ask):
            self.run_command(suggestion.command)
        return suggestion

    def run_command(self, command: str) -> CommandResult:
        result = self.runner(command)
        if result.ok:
            self.display.command_output(result.output)
        else:
            self.display.error(f"\nCommand execution failed: {result.error}")
            if result.output:
                self.display.command_output(result.output)
        return result

    # -- Directives -----------------------------------------------------------

    def _exit(self, arg: str) -> None:
        self.close()

    def _clear(self, arg: str) -> None:
        self.context.history = []
        self._persist()
        self.display.warning("Conversation history cleared.")

    def _help(self, arg: str) -> None:
        self.display.help()

    def _history(self, arg: str) -> None:
        self.display.history(self.context.history)

    def _debug(self, arg: str) -> None:
        self.display.debug(self.context.history, self.context.masked_config())

    def _file(self, arg: str) -> None:
        if not arg:
            self.display.warning("Usage: .file <path>")
            return
        try:
            content = load_file_context(arg, warn=self.display.warning)
        except FileContextError as e:
            self.display.error(f"Error loading file: {e.reason}")
            return

        self.context.history.append({"role": "user", "content": FILE_PROMPT.format(path=arg, content=content)})
        self.display.warning(f"File loaded: {arg} ({get_file_type(arg)})")
        self._persist()
        self.invoke_model()

    def _model(self, arg: str) -> None:
        selection = arg.split()[0] if arg else ""
        if not selection:
            self.display.models(PREDEFINED_MODELS, self.context.config["model"])
            self.display.warning("To change model: .model <model_id> or .model <number>")
            return

        old_model = self.context.config["model"]
        self.context.config["model"] = resolve_model(selection)
        self.display.warning(f"Model changed from {old_model} to {self.context.config['model']}")
        if not save_config(self.context.config, self.context.config_path):
            self.display.error("Error saving config file; the change applies to this session only.")

    def _temp(self, arg: str) -> None:
        value = None
        if arg:
            try:
                value = float(arg.split()[0])
            except ValueError:
                value = None

        if value is None or not 0 <= value <= 1:
            self.display.warning(f"Current temperature: {self.context.temperature}")
            self.display.warning("Usage: .temp <value 0-1>")
            return

        self.context.temperature = value
        self.display.warning(f"Temperature set to {value}")

    def _save(self, arg: str) -> None:
        filename = arg.split()[0] if arg else f"chat_{int(time.time() * 1000)}.txt"
        try:
            Path(filename).write_text(render_transcript(self.context.history), encoding="utf-8")
        except OSError as e:
            logger.warning("Could not save transcript to %s: %s", filename, e)
            self.display.error(f"Error saving conversation: {e}")
            return
        self.display.success(f"Conversation saved to {filename}")

    def _continue(self, arg: str) -> None:
        if not any(msg.get("role") == "assistant" for msg in self.context.history):
            self.display.warning("No previous assistant message to continue from.")
            return
        self.context.history.append({"role": "user", "content": CONTINUE_PROMPT})
        self._persist()
        self.invoke_model()

    # -- Helpers --------------------------------------------------------------

    def _persist(self) -> None:
        try:
            self.context.history = self.context.store.save(self.context.history)
        except OSError as e:
            logger.error("Error saving history: %s", e)
            self.display.error(f"Error saving history: {e}")

    def _debug_history(self, header: str) -> None:
        if not os.getenv("DEBUG_HISTORY"):
            return
        self.display.muted(f"[DEBUG] {header}:")
        self.display.history_previews(self.context.history, style="dim")
