"""Tests for the request classifier and its parse pipeline."""

from __future__ import annotations

import json

import pytest

from spine_studio.pipeline.classifier import (
    classify_request,
    parse_classification,
    try_structured_parse,
    try_text_heuristic,
)
from spine_studio.schemas.pipeline import RequestCategory
from tests.helpers.mocks import make_openai_client

TAXONOMY = {c.value for c in RequestCategory}


class TestStructuredParse:
    def test_plain_json(self) -> None:
        text = json.dumps({
            "category": "image_generation",
            "confidence": 0.92,
            "reasoning": "wants a hat",
            "extractedParams": {"itemType": "hat", "color": "red"},
        })
        result = try_structured_parse(text)
        assert result is not None
        assert result.category == "image_generation"
        assert result.extracted_params == {"itemType": "hat", "color": "red"}

    def test_code_fenced_json(self) -> None:
        text = '```json\n{"category": "export_assets", "confidence": 0.8, "reasoning": "x"}\n```'
        result = try_structured_parse(text)
        assert result is not None
        assert result.category == "export_assets"
        assert result.extracted_params == {}

    def test_legacy_animation_category(self) -> None:
        text = json.dumps({"category": "run_animation", "confidence": 0.9, "reasoning": "run", "extractedParams": {"speed": "faster"}})
        result = try_structured_parse(text)
        assert result is not None
        assert result.category == "animation"
        assert result.extracted_params == {"animationType": "run", "speed": "faster"}

    def test_legacy_appearance_change(self) -> None:
        result = try_structured_parse('{"category": "appearance_change", "confidence": 0.7, "reasoning": ""}')
        assert result is not None
        assert result.category == "image_generation"

    @pytest.mark.parametrize(
        "text",
        [
            "not json at all",
            "[1, 2, 3]",
            '{"category": "teleport", "confidence": 0.9}',
            '{"category": "animation", "confidence": 7}',
            '{"category": "animation", "confidence": "very"}',
        ],
    )
    def test_schema_violations(self, text: str) -> None:
        assert try_structured_parse(text) is None


class TestTextHeuristic:
    def test_walking(self) -> None:
        result = try_text_heuristic("I think this is about walking faster")
        assert result is not None
        assert result.category == "animation"
        assert result.confidence == 0.5
        assert "fallback" in result.reasoning.lower()

    def test_priority_order(self) -> None:
        result = try_text_heuristic("generate an image of him dancing, then export it")
        assert result is not None
        assert result.category == "image_generation"

    def test_export(self) -> None:
        result = try_text_heuristic("They want to DOWNLOAD the files")
        assert result is not None
        assert result.category == "export_assets"

    def test_no_hit(self) -> None:
        assert try_text_heuristic("hello there") is None


class TestParseClassification:
    def test_kinds(self) -> None:
        assert parse_classification('{"category": "unknown", "confidence": 0.1, "reasoning": ""}').kind == "structured"
        assert parse_classification("maybe jump?").kind == "heuristic"
        failed = parse_classification("¯\\_(ツ)_/¯")
        assert failed.kind == "failed"
        assert failed.result.category == "unknown"
        assert failed.result.confidence == 0.0


class TestClassifyRequest:
    @pytest.mark.asyncio
    async def test_structured(self) -> None:
        client = make_openai_client(
            '{"category": "animation", "confidence": 0.95, "reasoning": "walk", "extractedParams": {"speed": "faster"}}'
        )
        result = await classify_request(client, "make him walk faster")
        assert result.category == "animation"
        assert result.confidence == 0.95
        kwargs = client.chat.completions.create.await_args.kwargs
        assert kwargs["temperature"] == 0.1
        assert kwargs["messages"][-1] == {"role": "user", "content": "make him walk faster"}

    @pytest.mark.asyncio
    async def test_text_fallback(self) -> None:
        client = make_openai_client("I think this is about walking faster")
        result = await classify_request(client, "make him walk faster")
        assert result.category == "animation"
        assert result.confidence == 0.5
        assert "fallback" in result.reasoning.lower()

    @pytest.mark.asyncio
    async def test_transport_failure(self) -> None:
        client = make_openai_client(TimeoutError("timed out"))
        result = await classify_request(client, "give him a red hat")
        assert result.category == "unknown"
        assert result.confidence == 0.0

    @pytest.mark.asyncio
    async def test_empty_content(self) -> None:
        client = make_openai_client(None)
        result = await classify_request(client, "")
        assert result.category == "unknown"

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "reply",
        [
            "",
            "null",
            "{}",
            '{"category": null}',
            '{"category": "animation", "confidence": -1}',
            "```\n```",
            "random words about textures and exports",
            '{"confidence": 0.4, "reasoning": "no category given"}',
        ],
    )
    async def test_always_in_taxonomy(self, reply: str) -> None:
        client = make_openai_client(reply)
        result = await classify_request(client, "whatever")
        assert result.category in TAXONOMY
        assert 0.0 <= result.confidence <= 1.0
