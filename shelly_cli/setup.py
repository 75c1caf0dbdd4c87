"""
Interactive setup wizard for Shelly-AI.

Guides users through:
1. API key configuration
2. Model selection
3. Request tags (site URL / site name)
4. History size

Config files are stored in ~/.shelly-ai/ for easy access.
"""

import getpass
import logging
import sys
from pathlib import Path
from typing import Any, Callable, Dict, Optional

from chat.display import Display
from shelly_cli.config import save_config
from shelly_cli.models import PREDEFINED_MODELS, model_by_index
from shelly_constants import OPENROUTER_KEYS_URL

logger = logging.getLogger(__name__)


class SetupPrompter:
    """Question helpers bound to one display and input source."""

    def __init__(
        self,
        display: Optional[Display] = None,
        ask: Callable[[str], str] = input,
        ask_secret: Callable[[str], str] = getpass.getpass,
    ):
        self.display = display or Display()
        self.ask = ask
        self.ask_secret = ask_secret

    def prompt(self, question: str, default: str = None, password: bool = False) -> str:
        """Prompt for input with optional default."""
        if default:
            shown = "********" if password else default
            display = f"{question} [{shown}]: "
        else:
            display = f"{question}: "

        try:
            if password:
                value = self.ask_secret(display)
            else:
                value = self.ask(display)
            return value.strip() or default or ""
        except (KeyboardInterrupt, EOFError):
            self.display.newline()
            sys.exit(1)

    def prompt_int(self, question: str, default: int) -> int:
        """Prompt for a positive integer; anything else keeps the default."""
        value = self.prompt(question, str(default))
        try:
            number = int(value)
        except ValueError:
            self.display.warning(f"Not a number, keeping {default}")
            return default
        if number < 1:
            self.display.warning(f"Must be at least 1, keeping {default}")
            return default
        return number


def run_setup_wizard(
    config: Dict[str, Any],
    config_path: Optional[Path] = None,
    prompter: Optional[SetupPrompter] = None,
) -> Dict[str, Any]:
    """Walk the user through every persisted setting and save the result."""
    prompter = prompter or SetupPrompter()
    display = prompter.display

    display.console.print("[blue]Shelly-AI Setup Wizard[/blue]")
    display.console.print("[blue]----------------------[/blue]")

    config["api_key"] = prompter.prompt(
        f"OpenRouter API Key, obtain from {OPENROUTER_KEYS_URL}",
        config.get("api_key"),
        password=True,
    )

    display.models(PREDEFINED_MODELS, config["model"])
    selection = prompter.prompt(
        f"Select model by number (1-{len(PREDEFINED_MODELS)}) or enter custom model ID [Default: keep current]"
    )
    if model_by_index(selection):
        config["model"] = model_by_index(selection)
        display.success(f"Selected model: {config['model']}")
    elif selection:
        config["model"] = selection
        display.success(f"Custom model set: {config['model']}")
    else:
        display.warning(f"Keeping current model: {config['model']}")

    config["site_url"] = prompter.prompt("Site URL", config.get("site_url"))
    config["site_name"] = prompter.prompt("Site Name", config.get("site_name"))
    config["max_history_length"] = prompter.prompt_int(
        "Maximum conversation turns to remember", config.get("max_history_length", 10)
    )

    if save_config(config, config_path):
        display.success("Configuration saved successfully")
    else:
        display.error("Could not save configuration")
    logger.info("Setup wizard finished (model=%s)", config["model"])
    return config
