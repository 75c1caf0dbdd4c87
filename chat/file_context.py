"""Loading local files as conversation context."""

import logging
from pathlib import Path
from typing import Callable, Iterable, Optional

from chat.errors import FileContextError

logger = logging.getLogger(__name__)

# Files above this size still load, with a warning about context usage
LARGE_FILE_BYTES = 1024 * 1024

FILE_TYPES = {
    ".js": "JavaScript",
    ".jsx": "React JavaScript",
    ".ts": "TypeScript",
    ".tsx": "React TypeScript",
    ".py": "Python",
    ".java": "Java",
    ".c": "C",
    ".cpp": "C++",
    ".cs": "C#",
    ".go": "Go",
    ".rb": "Ruby",
    ".php": "PHP",
    ".html": "HTML",
    ".css": "CSS",
    ".json": "JSON",
    ".md": "Markdown",
    ".txt": "Text",
    ".yml": "YAML",
    ".yaml": "YAML",
    ".xml": "XML",
    ".csv": "CSV",
    ".sql": "SQL",
    ".sh": "Shell",
}


def load_file_context(path: str, warn: Optional[Callable[[str], None]] = None) -> str:
    """Read one file as text.

    Raises:
        FileContextError: If the file is missing or unreadable.
    """
    file_path = Path(path).expanduser()
    if not file_path.is_file():
        raise FileContextError(path, f"File not found: {path}")

    try:
        size = file_path.stat().st_size
        if size > LARGE_FILE_BYTES:
            message = (
                f"Warning: File {path} is large ({round(size / 1024)}KB). "
                "This may consume a significant portion of the context window."
            )
            logger.warning(message)
            if warn:
                warn(message)
        return file_path.read_text(encoding="utf-8", errors="replace")
    except OSError as e:
        raise FileContextError(path, str(e)) from e


def looks_like_query_text(path: str) -> bool:
    """Arguments starting with a quote or containing '?' are query text, not paths."""
    return path.startswith('"') or "?" in path


def load_file_contexts(
    paths: Iterable[str],
    on_loaded: Optional[Callable[[str], None]] = None,
    on_error: Optional[Callable[[str], None]] = None,
    warn: Optional[Callable[[str], None]] = None,
) -> str:
    """Load several files into one combined context block.

    A file that fails to load is reported through ``on_error`` and skipped;
    the remaining files are still processed.
    """
    combined = []
    for path in paths or []:
        if looks_like_query_text(path):
            logger.debug("Skipping possible query text as file path: %s", path)
            continue
        try:
            content = load_file_context(path, warn=warn)
        except FileContextError as e:
            logger.warning("%s", e)
            if on_error:
                on_error(e.reason)
            continue
        combined.append(f"--- File: {path} ---\n\n{content}\n\n")
        if on_loaded:
            on_loaded(path)
    return "".join(combined)


def get_file_type(path: str) -> str:
    """Human-readable language/format name from the file extension."""
    return FILE_TYPES.get(Path(path).suffix.lower(), "Unknown")

