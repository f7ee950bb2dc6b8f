"""Domain types: field encodings, bridge round trips and response helpers."""

from __future__ import annotations

import datetime

from hypothesis import given, settings
from hypothesis import strategies as st
import pytest

from castor._bridge import from_node, to_node
from castor.errors import ConversionError
from castor.types import (
    Candidate,
    Citation,
    Content,
    File,
    FunctionResponse,
    GenerateContentConfig,
    GenerateContentResponse,
    HttpOptions,
    Language,
    LiveServerMessage,
    Outcome,
    Part,
    PartialDate,
    TokensInfo,
)

pytestmark = pytest.mark.unit


# =============================================================================
# Field encodings
# =============================================================================


def test_int64_fields_serialize_as_strings() -> None:
    node = to_node(File(name="files/a", size_bytes=2**40))
    assert node["sizeBytes"] == str(2**40)
    assert from_node(File, node).size_bytes == 2**40


def test_int64_accepts_numbers_and_rejects_garbage() -> None:
    assert from_node(TokensInfo, {"tokenIds": [1, "2"]}).token_ids == [1, 2]
    with pytest.raises(ConversionError, match="tokenIds"):
        from_node(TokensInfo, {"tokenIds": ["x"]})


def test_base64_bytes_round_trip() -> None:
    part = Part.from_bytes(b"\x00\xffhello", "application/octet-stream")
    node = to_node(part)
    assert node["inlineData"]["data"] == "AP9oZWxsbw=="
    assert from_node(Part, node).inline_data.data == b"\x00\xffhello"


def test_base64_accepts_url_safe_and_unpadded_text() -> None:
    info = from_node(TokensInfo, {"tokens": ["AP9oZWxsbw", "_-8"]})
    assert info.tokens == [b"\x00\xffhello", b"\xff\xef"]


@settings(max_examples=10, deadline=None, derandomize=True)
@given(data=st.binary(max_size=64))
def test_base64_preserves_arbitrary_bytes(data: bytes) -> None:
    info = from_node(TokensInfo, to_node(TokensInfo(tokens=[data])))
    assert info.tokens == [data]


@pytest.mark.parametrize(
    ("wire", "expected"),
    [
        ({"year": 2024}, PartialDate(2024)),
        ({"year": 2024, "month": 5, "day": 0}, PartialDate(2024, 5)),
        ("2024-05-17", PartialDate(2024, 5, 17)),
        ("2024-05", PartialDate(2024, 5)),
    ],
)
def test_partial_dates_parse(wire: object, expected: PartialDate) -> None:
    citation = from_node(Citation, {"publicationDate": wire})
    assert citation.publication_date == expected


def test_partial_date_serializes_iso_and_requires_year() -> None:
    citation = Citation(publication_date=datetime.date(2023, 1, 2))
    assert to_node(citation) == {"publicationDate": "2023-01-02"}
    with pytest.raises(ConversionError, match="publicationDate"):
        from_node(Citation, {"publicationDate": {"month": 3}})


# =============================================================================
# Bridge
# =============================================================================


def test_to_node_uses_wire_names_and_drops_none() -> None:
    config = GenerateContentConfig(
        max_output_tokens=5,
        http_options=HttpOptions(timeout=1.0),
        system_instruction=Part(text="sys"),
    )
    assert to_node(config) == {
        "systemInstruction": {"parts": [{"text": "sys"}]},
        "maxOutputTokens": 5,
    }


def test_from_node_treats_none_as_empty_and_ignores_unknown_fields() -> None:
    assert from_node(Content, None) == Content()
    assert from_node(Content, {"role": "model", "mystery": 1}).role == "model"


def test_from_node_names_field_and_input() -> None:
    with pytest.raises(ConversionError) as exc_info:
        from_node(Candidate, {"index": "first"})
    message = str(exc_info.value)
    assert "Candidate.index" in message
    assert "'first'" in message


# =============================================================================
# Constructors and response helpers
# =============================================================================


def test_part_and_content_constructors() -> None:
    assert Part.from_uri("gs://b/o", "image/png").file_data.file_uri == "gs://b/o"
    assert Part.from_function_call("f", {"a": 1}).function_call.args == {"a": 1}
    assert Part.from_function_response("f", {"r": 2}).function_response == FunctionResponse(
        name="f", response={"r": 2}
    )
    assert Part.from_executable_code("print(1)", Language.PYTHON).executable_code.code == "print(1)"
    assert Part.from_code_execution_result(Outcome.OUTCOME_OK, "1").code_execution_result.output == "1"
    content = Content.from_parts([Part.from_text("a")], role="model")
    assert content.role == "model"
    assert Content.from_text("b").role == "user"


def _response(*parts: Part) -> GenerateContentResponse:
    return GenerateContentResponse(
        candidates=[Candidate(content=Content(role="model", parts=list(parts)))]
    )


def test_response_text_skips_thoughts() -> None:
    response = _response(Part(text="thinking", thought=True), Part(text="Hello"), Part(text=" there"))
    assert response.text == "Hello there"


def test_response_text_is_none_without_text_parts() -> None:
    assert GenerateContentResponse().text is None
    assert _response(Part.from_function_call("f", {})).text is None


def test_response_function_calls_and_code_helpers() -> None:
    response = _response(
        Part.from_function_call("f", {"x": 1}),
        Part.from_executable_code("print(1)", Language.PYTHON),
        Part.from_code_execution_result(Outcome.OUTCOME_OK, "1\n"),
    )
    assert [call.name for call in response.function_calls] == ["f"]
    assert response.executable_code == "print(1)"
    assert response.code_execution_result == "1\n"
    assert _response(Part(text="x")).function_calls is None


def test_live_server_message_text_and_data() -> None:
    message = from_node(
        LiveServerMessage,
        {
            "serverContent": {
                "modelTurn": {
                    "parts": [
                        {"text": "a"},
                        {"inlineData": {"mimeType": "audio/pcm", "data": "AAE="}},
                        {"text": "b"},
                    ]
                }
            }
        },
    )
    assert message.text == "ab"
    assert message.data == b"\x00\x01"
    assert LiveServerMessage().text is None
    assert LiveServerMessage().data is None
