"""Tests for prompt validation and template/style resolution."""

import pytest

from vizgen.models.art_style import ArtStyle
from vizgen.models.generation_job import Modality
from vizgen.models.template import Template
from vizgen.services.exceptions import TemplateDisabled, TemplateNotFound, ValidationError
from vizgen.services.generation.prompt_resolver import DEFAULT_STYLE_LABEL, resolve_prompt
from vizgen.services.generation.prompt_validator import validate_prompt
from vizgen.services.generation.schemas import GenerateRequest


def image_request(**overrides) -> GenerateRequest:
    fields = {"modality": Modality.IMAGE, "prompt": "a fox in the snow"}
    fields.update(overrides)
    return GenerateRequest(**fields)


class TestValidatePrompt:
    def test_strips_whitespace(self):
        assert validate_prompt("  a fox  ") == "a fox"

    def test_blank_prompt_rejected(self):
        with pytest.raises(ValidationError, match="empty"):
            validate_prompt("   \n ")

    def test_max_length_boundary(self):
        assert validate_prompt("x" * 1000) == "x" * 1000
        with pytest.raises(ValidationError, match="1000"):
            validate_prompt("x" * 1001)


@pytest.mark.asyncio
class TestResolvePrompt:
    async def test_no_style_uses_default_label(self, uow_factory):
        async with await uow_factory() as uow:
            resolved = await resolve_prompt(uow, image_request())

        assert resolved.prompt == "a fox in the snow"
        assert resolved.style_label == DEFAULT_STYLE_LABEL
        assert resolved.template is None

    async def test_free_text_style_becomes_label(self, uow_factory):
        async with await uow_factory() as uow:
            resolved = await resolve_prompt(uow, image_request(style=" ukiyo-e "))

        assert resolved.style_label == "ukiyo-e"
        # Free-text style is appended by the provider client, not here
        assert resolved.prompt == "a fox in the snow"

    async def test_style_id_prepends_description(self, uow_factory):
        async with await uow_factory() as uow:
            style = await uow.styles.add(
                ArtStyle(name="Watercolor", description="soft watercolor wash")
            )
            style_id = style.id

        async with await uow_factory() as uow:
            resolved = await resolve_prompt(uow, image_request(style_id=style_id, style="ignored"))

        assert resolved.prompt == "soft watercolor wash, a fox in the snow"
        assert resolved.style_label == "Watercolor"

    async def test_style_with_blank_description_only_sets_label(self, uow_factory):
        async with await uow_factory() as uow:
            style = await uow.styles.add(ArtStyle(name="Plain", description="   "))
            style_id = style.id

        async with await uow_factory() as uow:
            resolved = await resolve_prompt(uow, image_request(style_id=style_id))

        assert resolved.prompt == "a fox in the snow"
        assert resolved.style_label == "Plain"

    async def test_unknown_style_id_falls_back(self, uow_factory):
        async with await uow_factory() as uow:
            resolved = await resolve_prompt(uow, image_request(style_id=999))

        assert resolved.prompt == "a fox in the snow"
        assert resolved.style_label == DEFAULT_STYLE_LABEL

    async def test_active_template_is_returned(self, uow_factory):
        async with await uow_factory() as uow:
            template = await uow.templates.add(Template(title="Fox", prompt="a fox"))
            template_id = template.id

        async with await uow_factory() as uow:
            resolved = await resolve_prompt(uow, image_request(template_id=template_id))

        assert resolved.template is not None
        assert resolved.template.id == template_id
        # Resolution never touches the usage counter
        assert resolved.template.usage_count == 0

    async def test_missing_template_rejected(self, uow_factory):
        async with await uow_factory() as uow:
            with pytest.raises(TemplateNotFound):
                await resolve_prompt(uow, image_request(template_id=12345))

    async def test_disabled_template_rejected(self, uow_factory):
        async with await uow_factory() as uow:
            template = await uow.templates.add(
                Template(title="Old", prompt="retired preset", is_active=False)
            )
            template_id = template.id

        async with await uow_factory() as uow:
            with pytest.raises(TemplateDisabled):
                await resolve_prompt(uow, image_request(template_id=template_id))

    async def test_blank_prompt_rejected(self, uow_factory):
        async with await uow_factory() as uow:
            with pytest.raises(ValidationError):
                await resolve_prompt(uow, image_request(prompt="    "))
