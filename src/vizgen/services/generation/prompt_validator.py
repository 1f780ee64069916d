"""Prompt validation for generation requests.

Validates text prompts before a job is created.
"""

from vizgen.services.exceptions import ValidationError

MAX_PROMPT_LENGTH = 1000


def validate_prompt(prompt: str) -> str:
    """Validate prompt text for generation.

    Args:
        prompt: Text prompt from the user

    Returns:
        Prompt with surrounding whitespace removed

    Raises:
        ValidationError: If prompt is blank, not a string, or exceeds 1000 characters
    """
    if not isinstance(prompt, str):
        raise ValidationError(f"Prompt must be a string, got {type(prompt).__name__}")

    prompt = prompt.strip()
    if not prompt:
        raise ValidationError("Prompt cannot be empty")

    if len(prompt) > MAX_PROMPT_LENGTH:
        raise ValidationError(
            f"Prompt exceeds maximum length of {MAX_PROMPT_LENGTH} characters (got {len(prompt)})"
        )

    return prompt
