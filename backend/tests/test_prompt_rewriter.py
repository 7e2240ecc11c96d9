"""Tests for prompt rewriting and enhancement."""

from __future__ import annotations

import pytest

from spine_studio.pipeline.prompt_rewriter import enhance_prompt, fallback_rewrite, rewrite_prompt
from tests.helpers.mocks import make_openai_client


class TestRewrite:
    @pytest.mark.asyncio
    async def test_uses_model_answer(self) -> None:
        client = make_openai_client('"Generate an image of a red hat"')
        assert await rewrite_prompt(client, "give him a red hat") == "Generate an image of a red hat"

    @pytest.mark.asyncio
    async def test_keeps_first_line_only(self) -> None:
        client = make_openai_client("Generate an image of a cape\nHope this helps!")
        assert await rewrite_prompt(client, "a cape") == "Generate an image of a cape"

    @pytest.mark.asyncio
    async def test_call_failure_uses_template(self) -> None:
        client = make_openai_client(ConnectionError("down"))
        assert await rewrite_prompt(client, "give him a red hat") == "Generate an image of a hat"

    @pytest.mark.asyncio
    async def test_empty_answer_uses_template(self) -> None:
        client = make_openai_client("")
        assert await rewrite_prompt(client, "a flowing cloak") == "Generate an image of a flowing cloak"

    @pytest.mark.parametrize(
        ("original", "expected"),
        [
            ("cool boots", "Generate an image of a pair of shoes"),
            ("a laser gun", "Generate an image of a gun"),
            ("  a wizard staff  ", "Generate an image of a wizard staff"),
            ("make that shirt red", "Generate an image of a shirt"),
            ("an escape rope", "Generate an image of an escape rope"),
        ],
    )
    def test_fallback_templates(self, original: str, expected: str) -> None:
        assert fallback_rewrite(original) == expected


class TestEnhance:
    def test_without_references(self) -> None:
        prompt = enhance_prompt("Generate an image of a hat", color="red", item_type="hat", facing="right")
        assert prompt.startswith("Generate an image of a hat")
        assert "Color: red" in prompt
        assert "Item: hat" in prompt
        assert "faces right" in prompt
        assert "Reference images" not in prompt

    def test_section_order(self, system_images, user_images) -> None:
        prompt = enhance_prompt(
            "Generate an image of a hat",
            references=[*user_images, system_images[0]],
            facing="right",
            target_slot="head",
        )
        constraints = prompt.index("Technical requirements")
        item = prompt.index("Request type")
        orientation = prompt.index("Orientation:")
        block = prompt.index("Reference images")
        assert constraints < item < orientation < block

        steps = [prompt.index(f"{n}. ") for n in range(1, 5)]
        assert steps == sorted(steps)
        assert f"({system_images[0].name})" in prompt
        assert "(2 provided)" in prompt

    def test_idempotent(self, system_images, user_images) -> None:
        kwargs = dict(
            category="image_generation",
            color="blue",
            item_type="jacket",
            references=[user_images[0], system_images[1]],
            facing="right",
            target_slot="torso",
        )
        first = enhance_prompt("Generate an image of a jacket", **kwargs)
        second = enhance_prompt("Generate an image of a jacket", **kwargs)
        assert first == second
