"""
Canonical list of OpenRouter models offered by the CLI and setup wizard.

Add, remove, or reorder entries here -- `.model <n>`, `--list-models` and
`shelly --setup` all number models by their position in this list.
"""

from typing import Optional

# (model_id, is_free, description shown in menus)
PREDEFINED_MODELS: list[tuple[str, bool, str]] = [
    ("google/gemini-2.0-flash-lite-preview-02-05:free", True,  "Google's Gemini Flash Lite - Fast and efficient"),
    ("deepseek/deepseek-r1:free",                       True,  "DeepSeek's reasoning and problem-solving model"),
    ("anthropic/claude-3.5-sonnet",                     False, "Advanced Anthropic Claude model with strong reasoning"),
    ("openai/gpt-4o-mini",                              False, "Smaller variant of GPT-4o with lower latency"),
    ("mistralai/mistral-nemo",                          False, "Mistral AI's powerful NeMo model"),
    ("cognitivecomputations/dolphin3.0-mistral-24b:free", True, "Dolphin Mistral 24B tuning - free tier"),
]

DEFAULT_MODEL = "cognitivecomputations/dolphin3.0-mistral-24b:free"


def model_ids() -> list[str]:
    """Return just the model-id strings (convenience helper)."""
    return [mid for mid, _, _ in PREDEFINED_MODELS]


def model_by_index(selection: str) -> Optional[str]:
    """Map a 1-based menu number to a model id, or None if it isn't one."""
    try:
        index = int(selection.strip())
    except (ValueError, AttributeError):
        return None
    if 1 <= index <= len(PREDEFINED_MODELS):
        return PREDEFINED_MODELS[index - 1][0]
    return None


def resolve_model(selection: str) -> str:
    """Resolve a `.model` argument: a valid menu number or a literal model id."""
    return model_by_index(selection) or selection.strip()
