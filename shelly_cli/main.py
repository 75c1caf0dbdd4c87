"""
Shelly-AI command-line entry point.

Usage:
    shelly                          # interactive chat
    shelly how do I list open ports # one-shot query, then offer to keep chatting
    shelly -f app.py explain this   # attach file context to the query
    shelly --setup                  # configuration wizard
    shelly --list-models            # show known models
    shelly --clear                  # wipe conversation history
"""

import argparse
import logging
import sys
from logging.handlers import RotatingFileHandler
from typing import List, Optional

from chat.command_runner import is_confirmation
from chat.display import Display
from chat.errors import AuthError
from chat.file_context import get_file_type, load_file_contexts
from chat.history_store import HistoryStore
from chat.session import ChatSession, SessionContext, make_prompt_reader
from chat.transport import CompletionClient
from shelly_cli.config import (
    ensure_shelly_home,
    get_history_path,
    get_logs_dir,
    get_shelly_home,
    load_config,
    load_env,
)
from shelly_cli.models import PREDEFINED_MODELS
from shelly_cli.setup import run_setup_wizard

logger = logging.getLogger(__name__)

DEFAULT_FILE_QUERY = "Please analyze the provided files."


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="shelly",
        description="Chat with OpenRouter models from your terminal and run the shell commands they suggest.",
    )
    parser.add_argument("query", nargs="*", help="One-shot query (words are joined with spaces)")
    parser.add_argument("-m", "--model", help="Model to use for chat")
    parser.add_argument("-k", "--key", help="OpenRouter API key")
    parser.add_argument("-t", "--temperature", type=float, default=0.7,
                        help="Temperature for response generation (0-1)")
    parser.add_argument("-c", "--config", help="Path to config file")
    parser.add_argument("-l", "--list-models", action="store_true", help="List available models")
    parser.add_argument("--setup", action="store_true", help="Run the setup wizard")
    parser.add_argument("--clear", action="store_true", help="Clear conversation history")
    parser.add_argument("-n", "--continue", dest="continue_chat", action="store_true",
                        help="Continue the conversation after one-time query")
    parser.add_argument("-e", "--execute", action="store_true",
                        help="Auto-execute commands returned by the assistant")
    parser.add_argument("-f", "--file", action="append", default=[], metavar="PATH",
                        help="Include a file as context for the query (repeatable)")
    parser.add_argument("-s", "--stream", action=argparse.BooleanOptionalAction, default=True,
                        help="Stream the response in real-time")
    parser.add_argument("-v", "--verbose", action="store_true", help="Enable debug logging on stderr")
    return parser


def setup_logging(verbose: bool = False) -> None:
    """Log to ~/.shelly-ai/logs/shelly.log, and to stderr with --verbose."""
    root = logging.getLogger()
    root.setLevel(logging.DEBUG if verbose else logging.INFO)

    formatter = logging.Formatter(
        "%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )
    logs_dir = get_logs_dir()
    logs_dir.mkdir(parents=True, exist_ok=True)
    file_handler = RotatingFileHandler(
        logs_dir / "shelly.log", maxBytes=1024 * 1024, backupCount=3, encoding="utf-8"
    )
    file_handler.setFormatter(formatter)
    root.addHandler(file_handler)

    if verbose:
        stream_handler = logging.StreamHandler(sys.stderr)
        stream_handler.setFormatter(formatter)
        root.addHandler(stream_handler)

    # Keep third-party libraries quiet
    logging.getLogger("urllib3").setLevel(logging.WARNING)
    logging.getLogger("requests").setLevel(logging.WARNING)


def collect_file_context(paths: List[str], display: Display) -> str:
    if not paths:
        return ""
    return load_file_contexts(
        paths,
        on_loaded=lambda p: display.success(f"Loaded file as context: {p} ({get_file_type(p)})"),
        on_error=display.error,
        warn=display.warning,
    )


def build_query(file_context: str, query: str) -> str:
    """Combine loaded file context with the positional query."""
    if file_context:
        return f"{file_context}\n\n{query or DEFAULT_FILE_QUERY}"
    return query


def main(argv: Optional[List[str]] = None, display: Optional[Display] = None) -> int:
    args = build_parser().parse_intermixed_args(argv)
    display = display or Display()

    load_env()
    ensure_shelly_home()
    setup_logging(args.verbose)
    logger.debug("Shelly home: %s", get_shelly_home())

    config = load_config(args.config)
    if args.key:
        config["api_key"] = args.key
    if args.model:
        config["model"] = args.model

    store = HistoryStore(get_history_path(), config["max_history_length"])

    if args.clear:
        try:
            store.clear()
        except OSError as e:
            display.error(f"Error clearing history: {e}")
            return 1
        display.success("Conversation history cleared.")
        return 0

    if args.setup:
        run_setup_wizard(config, args.config)
        return 0

    if args.list_models:
        display.models(PREDEFINED_MODELS, config["model"])
        return 0

    if not 0 <= args.temperature <= 1:
        display.warning(f"Temperature {args.temperature} is outside 0-1; using 0.7")
        args.temperature = 0.7

    context = SessionContext(
        config=config,
        store=store,
        history=store.load(),
        config_path=args.config,
        temperature=args.temperature,
        stream=args.stream,
        auto_execute=args.execute,
    )
    session = ChatSession(
        context,
        client=CompletionClient(config),
        display=display,
        ask=make_prompt_reader(get_shelly_home() / "input_history"),
    )

    file_context = collect_file_context(args.file, display)
    query = build_query(file_context, " ".join(args.query))

    try:
        if query:
            if not config.get("api_key"):
                raise AuthError()
            if not session.run_once(query):
                return 1
            if not args.continue_chat and not _ask_continue(session, display):
                return 0
            display.warning("\nContinuing in interactive mode. Type .exit to quit.\n")
            session.run(show_banner=False)
        else:
            session.run()
    except AuthError as e:
        logger.error("Authentication failed: %s", e)
        display.error(str(e))
        return 1
    except KeyboardInterrupt:
        logger.info("Interrupted by user")
        display.newline()
        return 130
    finally:
        session.close()
    return 0


def _ask_continue(session: ChatSession, display: Display) -> bool:
    try:
        answer = session.ask("\nContinue chatting? [Y/n] ")
    except (KeyboardInterrupt, EOFError):
        display.newline()
        return False
    return is_confirmation(answer)


def main_entry() -> None:
    """Console-script entry point."""
    sys.exit(main())


if __name__ == "__main__":
    main_entry()
