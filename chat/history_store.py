"""Conversation history persistence.

The history file is a JSON array of ``{"role", "content"}`` messages. It is
read once when a session starts and overwritten wholesale after every turn,
keeping only the most recent ``max_turns * 2`` entries (one user plus one
assistant message per turn). The running process is assumed to be the only
writer.
"""

import json
import logging
from pathlib import Path
from typing import Any, Dict, List

logger = logging.getLogger(__name__)

Message = Dict[str, Any]


def truncate_history(messages: List[Message], max_turns: int) -> List[Message]:
    """Keep the most recent ``max_turns * 2`` messages, in original order."""
    limit = max_turns * 2
    if limit <= 0:
        return []
    if len(messages) > limit:
        return messages[-limit:]
    return list(messages)


class HistoryStore:
    """Loads and saves the conversation history file.

    Args:
        path: Location of the history JSON file.
        max_turns: Number of turns to retain on every save.
    """

    def __init__(self, path: Path, max_turns: int = 10):
        self.path = Path(path)
        self.max_turns = max_turns

    def load(self) -> List[Message]:
        """Read the history file. A missing file is an empty history.

        A corrupt or unreadable file is logged and treated as empty so the
        session can start fresh.
        """
        if not self.path.exists():
            return []
        try:
            data = json.loads(self.path.read_text(encoding="utf-8"))
        except (OSError, json.JSONDecodeError) as e:
            logger.error("Error reading history file %s, starting fresh: %s", self.path, e)
            return []

        if not isinstance(data, list):
            logger.error("History file %s is not a JSON array, starting fresh", self.path)
            return []
        return [
            msg for msg in data
            if isinstance(msg, dict) and "role" in msg and isinstance(msg.get("content"), str)
        ]

    def save(self, messages: List[Message]) -> List[Message]:
        """Truncate and write the history, returning the retained messages.

        Raises:
            OSError: If the file cannot be written.
        """
        retained = truncate_history(messages, self.max_turns)
        self.path.parent.mkdir(parents=True, exist_ok=True)
        self.path.write_text(json.dumps(retained, ensure_ascii=False), encoding="utf-8")
        logger.debug("Saved %d messages to %s", len(retained), self.path)
        return retained

    def clear(self) -> None:
        """Replace the stored history with an empty list."""
        self.save([])


def render_transcript(messages: List[Message]) -> str:
    """Render messages as role-prefixed paragraphs for `.save`."""
    lines = []
    for msg in messages:
        role = "You: " if msg.get("role") == "user" else "Assistant: "
        lines.append(f"{role}{msg.get('content', '')}\n\n")
    return "".join(lines)
