"""Request message assembly.

The system directive is injected at request-build time only. History on
disk never carries system messages, so each request gets exactly one.
"""

from typing import Any, Dict, List

SYSTEM_PROMPT = """You are a helpful assistant and shell expert. When asked about shell commands or how to perform system operations, \
respond with a JSON object that includes an "explanation" field and a "command" field if applicable. \
The "command" field should contain the shell command that would accomplish the task. \
If the user's query isn't about executing a command, just respond normally and don't include the JSON format.
Example format when command is applicable:
{
  "explanation": "This command lists all running Docker containers",
  "command": "docker ps"
}
Only return JSON when a specific command can be executed. Don't force a command if it's not appropriate."""


def build_system_message() -> Dict[str, str]:
    """Return the fixed system directive as a message dict."""
    return {"role": "system", "content": SYSTEM_PROMPT}


def prepare_messages(history: List[Dict[str, Any]]) -> List[Dict[str, str]]:
    """Build the request message list: system directive, then history.

    System entries in the history are dropped to avoid duplicates, and
    only the ``role``/``content`` keys are forwarded.
    """
    messages = [build_system_message()]
    for entry in history:
        if entry.get("role") == "system":
            continue
        messages.append({"role": entry["role"], "content": entry["content"]})
    return messages
