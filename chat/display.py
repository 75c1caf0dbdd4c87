"""CLI presentation -- banner, colored status lines, help and listings.

All output goes through a rich ``Console`` so tests can swap in one that
records to a buffer.
"""

import json
from typing import Any, Dict, List, Optional, Sequence, Tuple

from rich.console import Console
from rich.markup import escape

BANNER = r"""
  _________.__           .__  .__                     _____  .___
 /   _____/|  |__   ____ |  | |  | ___.__.           /  _  \ |   |
 \_____  \ |  |  \_/ __ \|  | |  |<   |  |  ______  /  /_\  \|   |
 /        \|   Y  \  ___/|  |_|  |_\\___  | /_____/ /    |    \   |
/_______  /|___|  /\___  >____/____/ ____|         \____|__  /___|
        \/      \/     \/          \/                      \/
"""

DIRECTIVE_HELP: List[Tuple[str, str]] = [
    (".exit", "Exit the chat"),
    (".clear", "Clear conversation history"),
    (".help", "Show this help message"),
    (".model [modelId]", "Change model (leave blank to list available models)"),
    (".temp [0-1]", "Change temperature (0 = deterministic, 1 = creative)"),
    (".save [filename]", "Save conversation to file"),
    (".continue", "Continue generating from last response"),
    (".history", "Show conversation history"),
    (".debug", "Show history state and configuration"),
    (".file [path]", "Load a file as context"),
]


def make_console(**kwargs) -> Console:
    return Console(highlight=False, soft_wrap=True, emoji=False, **kwargs)


def truncate(text: str, limit: int = 100) -> str:
    if len(text) <= limit:
        return text
    return f"{text[:limit]}..."


class Display:
    """Thin wrapper over a rich console with the CLI's color conventions."""

    def __init__(self, console: Optional[Console] = None):
        self.console = console or make_console()

    def _line(self, style: str, text: str):
        self.console.print(f"[{style}]{escape(text)}[/{style}]")

    def success(self, text: str):
        self._line("green", text)

    def warning(self, text: str):
        self._line("yellow", text)

    def error(self, text: str):
        self._line("red", text)

    def muted(self, text: str):
        self._line("dim", text)

    def write(self, text: str):
        """Write raw text with no newline (streamed deltas)."""
        self.console.print(text, end="", markup=False)

    def newline(self):
        self.console.print()

    def status(self, text: str):
        return self.console.status(text)

    def banner(self, model: str):
        self.console.print(f"[blue]{escape(BANNER)}\n    -> Using model: {escape(model)}\n[/blue]")
        self._line("blue", "Type .exit or Ctrl+C to quit, .clear to clear history")
        self._line("blue", "Use .help to see all commands")
        self.newline()

    def assistant(self, text: str):
        self.console.print(f"[blue]Assistant:[/blue] {escape(text)}")

    def assistant_prefix(self):
        self.console.print("[blue]Assistant: [/blue]", end="")

    def command(self, command: str, detected: bool = False):
        label = "Command detected:" if detected else "Command:"
        self.console.print(f"\n[green]{label}[/green] [yellow]{escape(command)}[/yellow]")

    def command_output(self, output: str):
        self.console.print("\n[cyan]Command output:[/cyan]")
        self.console.print(output, markup=False)

    def help(self):
        self._line("cyan", "\nShelly-AI Commands:")
        for name, description in DIRECTIVE_HELP:
            self._line("cyan", f"  {name:<17}- {description}")

    def models(self, models: Sequence[Tuple[str, bool, str]], current: str):
        """List known models with free/paid tags and the active model."""
        self._line("green", "\nAvailable models:")
        for index, (model_id, is_free, description) in enumerate(models, start=1):
            tag = "[green]\\[FREE][/green]" if is_free else "[yellow]\\[PAID][/yellow]"
            self.console.print(f"[blue]{index}[/blue]. {escape(model_id)} {tag}")
            self.console.print(f"   {escape(description)}")
        self._line("yellow", f"\nCurrent model: {current}")
        self._line("cyan", "You can use any model ID from OpenRouter, not just the ones listed above.")

    def history(self, history: List[Dict[str, Any]]):
        self._line("cyan", "\nConversation History:")
        if not history:
            self._line("yellow", "No history yet.")
        for msg in history:
            role = "[green]You: [/green]" if msg["role"] == "user" else "[blue]Assistant: [/blue]"
            self.console.print(f"{role}{escape(truncate(msg['content'], 100))}")
        self.newline()

    def history_previews(self, history: List[Dict[str, Any]], style: str = "cyan"):
        for i, msg in enumerate(history):
            self._line(style, f"[{i}] {msg['role']}: {truncate(msg['content'], 50)}")

    def debug(self, history: List[Dict[str, Any]], config: Dict[str, Any]):
        self._line("cyan", "\nDebug Information:")
        self._line("cyan", "Current history state:")
        if not history:
            self._line("yellow", "No history.")
        else:
            self.history_previews(history)
        self._line("cyan", f"\nTotal messages: {len(history)}")
        self._line("cyan", f"Config: {json.dumps(config, indent=2)}")
