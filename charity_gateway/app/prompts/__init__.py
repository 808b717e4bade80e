"""Static prompt templates for charity verification assistants."""

from typing import Any, Dict, List, Mapping, Optional

from charity_gateway.app.prompts.base import Prompt, PromptResult
from charity_gateway.app.prompts.quick_reference import QUICK_REFERENCE_PROMPTS
from charity_gateway.app.prompts.verification import VERIFICATION_PROMPTS

PROMPTS: Dict[str, Prompt] = {
    prompt.name: prompt for prompt in [*VERIFICATION_PROMPTS, *QUICK_REFERENCE_PROMPTS]
}


def list_prompts() -> List[Dict[str, Any]]:
    """Definitions of every registered prompt."""
    return [prompt.definition() for prompt in PROMPTS.values()]


def get_prompt(name: str, arguments: Optional[Mapping[str, Any]] = None) -> PromptResult:
    """Render a prompt by name.

    Raises:
        KeyError: If no prompt has that name
    """
    prompt = PROMPTS.get(name)
    if prompt is None:
        raise KeyError(f"Unknown prompt: {name}")
    return prompt.get(arguments or {})


__all__ = [
    "PROMPTS",
    "Prompt",
    "PromptResult",
    "get_prompt",
    "list_prompts",
]
