"""Resolve template and style references into the final prompt."""

from dataclasses import dataclass

import structlog

from vizgen.models.template import Template
from vizgen.services.exceptions import TemplateDisabled, TemplateNotFound
from vizgen.services.generation.prompt_validator import validate_prompt
from vizgen.services.generation.schemas import GenerateRequest
from vizgen.uow import UnitOfWork

logger = structlog.get_logger(__name__)

DEFAULT_STYLE_LABEL = "default"


@dataclass
class ResolvedPrompt:
    """Outcome of prompt resolution."""

    prompt: str  # Final prompt sent to the provider
    style_label: str  # Human-readable style stored on the job
    template: Template | None  # Referenced template, if any


async def resolve_prompt(uow: UnitOfWork, request: GenerateRequest) -> ResolvedPrompt:
    """Validate the raw prompt and apply template/style references.

    Rules:
    - template_id given: the template must exist and be active
    - style_id given and found: its name becomes the label, and a non-blank
      description is prepended as "{description}, {prompt}"
    - otherwise a non-blank ``style`` string is the label
    - otherwise the label is DEFAULT_STYLE_LABEL

    Does not touch the template's usage counter; the orchestrator bumps it
    once the job exists.

    Raises:
        ValidationError: Blank or oversized prompt
        TemplateNotFound: template_id does not exist
        TemplateDisabled: template is inactive
    """
    prompt = validate_prompt(request.prompt)

    template = None
    if request.template_id is not None:
        template = await uow.templates.get_by_id(request.template_id)
        if template is None:
            raise TemplateNotFound(request.template_id)
        if not template.is_active:
            raise TemplateDisabled(request.template_id)

    style_label = DEFAULT_STYLE_LABEL
    if request.style_id is not None:
        style = await uow.styles.get_by_id(request.style_id)
        if style is not None:
            style_label = style.name
            description = (style.description or "").strip()
            if description:
                prompt = f"{description}, {prompt}"
                logger.info(
                    "prompt.style_applied",
                    style_id=request.style_id,
                    style_name=style.name,
                )
        else:
            logger.warning("prompt.style_not_found", style_id=request.style_id)
    elif request.style and request.style.strip():
        style_label = request.style.strip()

    return ResolvedPrompt(prompt=prompt, style_label=style_label, template=template)
