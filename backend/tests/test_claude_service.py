import json
from unittest.mock import AsyncMock, MagicMock, patch

import anthropic
import httpx
import pytest

from bolgen.config import Settings
from bolgen.exceptions import (
    ExtractionError,
    ProcessingError,
    ProcessingTimeoutError,
    ServiceUnavailableError,
)
from bolgen.schemas.bol import BOLData
from bolgen.services.claude_service import (
    ClaudeService,
    build_extraction_prompt,
    parse_json_response,
)

API_REQUEST = httpx.Request("POST", "https://api.anthropic.com/v1/messages")


def make_mock_settings() -> Settings:
    return Settings(
        anthropic_api_key="test-key",
        claude_model="claude-sonnet-4-20250514",
        claude_max_tokens=4096,
        claude_temperature=0.1,
        _env_file=None,
    )


def make_mock_message(content_text: str):
    """Create a mock Anthropic message response."""
    mock_content = MagicMock()
    mock_content.text = content_text
    mock_message = MagicMock()
    mock_message.content = [mock_content]
    return mock_message


def make_status_error(cls, status_code: int):
    response = httpx.Response(status_code, request=API_REQUEST)
    return cls("refused", response=response, body=None)


class TestParseJsonResponse:
    def test_plain_json(self):
        assert parse_json_response('{"a": 1}') == {"a": 1}

    def test_markdown_wrapped_json(self):
        assert parse_json_response('Here you go:\n```json\n{"a": 1}\n```') == {"a": 1}

    def test_bare_fence(self):
        assert parse_json_response('```\n{"a": 1}\n```') == {"a": 1}

    def test_invalid_json(self):
        with pytest.raises(ExtractionError):
            parse_json_response("I could not read the documents.")

    def test_non_object_json(self):
        with pytest.raises(ExtractionError):
            parse_json_response("[1, 2, 3]")


class TestPrompt:
    def test_embeds_documents_and_guidelines(self):
        prompt = build_extraction_prompt("PL TEXT", "CI TEXT")
        assert "PACKING LIST:\nPL TEXT" in prompt
        assert "COMMERCIAL INVOICE:\nCI TEXT" in prompt
        assert "Never merge" in prompt
        assert "dangerous_goods" not in prompt

    def test_dangerous_goods_section_only_when_declared(self):
        prompt = build_extraction_prompt("PL", "CI", "UN1263 PAINT")
        assert "DANGEROUS GOODS DECLARATION:\nUN1263 PAINT" in prompt
        assert '"dangerous_goods": [' in prompt


@pytest.mark.asyncio
async def test_extract_returns_bol_data(bol_payload):
    service = ClaudeService(make_mock_settings())

    with patch.object(service.client.messages, "create", new_callable=AsyncMock) as mock_create:
        mock_create.return_value = make_mock_message(json.dumps(bol_payload))
        result = await service.extract("packing list text", "invoice text")

    assert isinstance(result, BOLData)
    assert result.consignee.name == "Gulf Foods Trading LLC"
    assert len(result.cargo) == 2


@pytest.mark.asyncio
async def test_extract_sends_configured_model_and_temperature(bol_payload):
    service = ClaudeService(make_mock_settings())

    with patch.object(service.client.messages, "create", new_callable=AsyncMock) as mock_create:
        mock_create.return_value = make_mock_message(json.dumps(bol_payload))
        await service.extract("packing list text", "invoice text")

    kwargs = mock_create.call_args.kwargs
    assert kwargs["model"] == "claude-sonnet-4-20250514"
    assert kwargs["max_tokens"] == 4096
    assert kwargs["temperature"] == 0.1
    assert "shipping document processor" in kwargs["system"]
    content = kwargs["messages"][0]["content"]
    assert content[0]["type"] == "text"
    assert "packing list text" in content[0]["text"]


@pytest.mark.asyncio
async def test_extract_wraps_single_dangerous_goods_object(bol_payload):
    service = ClaudeService(make_mock_settings())
    bol_payload["dangerous_goods"] = {"un_number": "UN1263", "hazard_class": "3", "packing_group": "III"}

    with patch.object(service.client.messages, "create", new_callable=AsyncMock) as mock_create:
        mock_create.return_value = make_mock_message(json.dumps(bol_payload))
        result = await service.extract("pl", "ci", "UN1263 PAINT")

    assert len(result.dangerous_goods) == 1
    assert result.dangerous_goods[0].un_number == "UN1263"
    assert result.has_dangerous_goods is True


@pytest.mark.asyncio
async def test_extract_handles_markdown_wrapped_wrapper_object(bol_payload):
    service = ClaudeService(make_mock_settings())
    text = "```json\n" + json.dumps({"BillOfLading": bol_payload}) + "\n```"

    with patch.object(service.client.messages, "create", new_callable=AsyncMock) as mock_create:
        mock_create.return_value = make_mock_message(text)
        result = await service.extract("pl", "ci")

    assert result.shipper.name == "Sunrise Agro Exports Pvt Ltd"


@pytest.mark.asyncio
async def test_extract_missing_required_field(bol_payload):
    service = ClaudeService(make_mock_settings())
    del bol_payload["cargo"]

    with patch.object(service.client.messages, "create", new_callable=AsyncMock) as mock_create:
        mock_create.return_value = make_mock_message(json.dumps(bol_payload))
        with pytest.raises(ExtractionError, match="Missing required fields"):
            await service.extract("pl", "ci")


@pytest.mark.asyncio
async def test_extract_invalid_cargo_row(bol_payload):
    service = ClaudeService(make_mock_settings())
    bol_payload["cargo"] = [{"marks": "no description or weight"}]

    with patch.object(service.client.messages, "create", new_callable=AsyncMock) as mock_create:
        mock_create.return_value = make_mock_message(json.dumps(bol_payload))
        with pytest.raises(ExtractionError):
            await service.extract("pl", "ci")


@pytest.mark.asyncio
async def test_extract_invalid_json():
    service = ClaudeService(make_mock_settings())

    with patch.object(service.client.messages, "create", new_callable=AsyncMock) as mock_create:
        mock_create.return_value = make_mock_message("not json at all")
        with pytest.raises(ExtractionError):
            await service.extract("pl", "ci")


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "error, expected",
    [
        (make_status_error(anthropic.RateLimitError, 429), ServiceUnavailableError),
        (make_status_error(anthropic.AuthenticationError, 401), ServiceUnavailableError),
        (make_status_error(anthropic.InternalServerError, 500), ProcessingError),
        (anthropic.APITimeoutError(request=API_REQUEST), ProcessingTimeoutError),
        (anthropic.APIConnectionError(request=API_REQUEST), ProcessingError),
    ],
)
async def test_api_errors_are_mapped(error, expected):
    service = ClaudeService(make_mock_settings())

    with patch.object(service.client.messages, "create", new_callable=AsyncMock) as mock_create:
        mock_create.side_effect = error
        with pytest.raises(expected):
            await service.extract("pl", "ci")


@pytest.mark.asyncio
async def test_transcribe_image_sends_vision_block():
    service = ClaudeService(make_mock_settings())

    with patch.object(service.client.messages, "create", new_callable=AsyncMock) as mock_create:
        mock_create.return_value = make_mock_message("  | Item | Bags |\n| Rice | 400 |  ")
        text = await service.transcribe_image("aGVsbG8=", "image/png")

    assert text == "| Item | Bags |\n| Rice | 400 |"
    content = mock_create.call_args.kwargs["messages"][0]["content"]
    assert content[0]["type"] == "image"
    assert content[0]["source"] == {"type": "base64", "media_type": "image/png", "data": "aGVsbG8="}
    assert content[1]["type"] == "text"
