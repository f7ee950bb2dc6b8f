"""Backend-agnostic domain types.

Every model serializes with camelCase aliases, the unified shape the
converters read and write. Three field encodings differ from plain JSON:
``Int64`` travels as a decimal string, ``Base64Bytes`` as standard base64 and
``PartialDate`` as an ISO-8601 date that may omit the month or day.
"""

from __future__ import annotations

import base64
import binascii
from dataclasses import dataclass
import datetime
from enum import Enum
import logging
import re
from typing import Annotated, Any

from pydantic import (
    BaseModel,
    BeforeValidator,
    ConfigDict,
    Field,
    PlainSerializer,
    PlainValidator,
)
from pydantic.alias_generators import to_camel

logger = logging.getLogger(__name__)

# =============================================================================
# Field encodings
# =============================================================================

_INT_RE = re.compile(r"[+-]?\d+")
_DATE_RE = re.compile(r"(\d{4})(?:-(\d{2})(?:-(\d{2}))?)?")


def _parse_int64(value: Any) -> int:
    if isinstance(value, bool):
        raise ValueError(f"expected an integer, got {value!r}")
    if isinstance(value, int):
        return value
    if isinstance(value, float) and value.is_integer():
        return int(value)
    if isinstance(value, str) and _INT_RE.fullmatch(value.strip()):
        return int(value.strip())
    raise ValueError(f"expected a decimal integer string, got {value!r}")


def _decode_base64(value: Any) -> bytes:
    if isinstance(value, (bytes, bytearray, memoryview)):
        return bytes(value)
    if not isinstance(value, str):
        raise ValueError(f"expected base64 text, got {type(value).__name__}")
    text = value.strip()
    text += "=" * (-len(text) % 4)
    try:
        if "-" in text or "_" in text:
            return base64.urlsafe_b64decode(text)
        return base64.b64decode(text, validate=True)
    except (binascii.Error, ValueError) as exc:
        raise ValueError(f"invalid base64 data {value!r}") from exc


def _encode_base64(value: bytes) -> str:
    return base64.b64encode(value).decode("ascii")


@dataclass(frozen=True)
class PartialDate:
    """A calendar date where month and day may be unknown."""

    year: int
    month: int | None = None
    day: int | None = None

    def __post_init__(self) -> None:
        if self.year < 1:
            raise ValueError(f"year must be positive, got {self.year}")
        if self.month is not None and not 1 <= self.month <= 12:
            raise ValueError(f"month must be in 1..12, got {self.month}")
        if self.day is not None:
            if self.month is None:
                raise ValueError("day requires a month")
            if not 1 <= self.day <= 31:
                raise ValueError(f"day must be in 1..31, got {self.day}")

    def isoformat(self) -> str:
        text = f"{self.year:04d}"
        if self.month is not None:
            text += f"-{self.month:02d}"
            if self.day is not None:
                text += f"-{self.day:02d}"
        return text

    @classmethod
    def parse(cls, value: Any) -> PartialDate:
        if isinstance(value, PartialDate):
            return value
        if isinstance(value, datetime.date):
            return cls(value.year, value.month, value.day)
        if isinstance(value, str):
            match = _DATE_RE.fullmatch(value.strip())
            if match is None:
                raise ValueError(f"invalid partial date {value!r}")
            year, month, day = match.groups()
            return cls(
                int(year),
                int(month) if month else None,
                int(day) if day else None,
            )
        if isinstance(value, dict):
            if not value.get("year"):
                raise ValueError(f"date {value!r} is missing a year")
            # Zero month/day mean "unspecified" on the wire.
            return cls(
                _parse_int64(value["year"]),
                _parse_int64(value["month"]) if value.get("month") else None,
                _parse_int64(value["day"]) if value.get("day") else None,
            )
        raise ValueError(f"invalid partial date {value!r}")


Int64 = Annotated[
    int,
    PlainValidator(_parse_int64),
    PlainSerializer(str, return_type=str, when_used="json"),
]
Base64Bytes = Annotated[
    bytes,
    PlainValidator(_decode_base64),
    PlainSerializer(_encode_base64, return_type=str, when_used="json"),
]
Date = Annotated[
    PartialDate,
    PlainValidator(PartialDate.parse),
    PlainSerializer(PartialDate.isoformat, return_type=str, when_used="json"),
]


class _BaseModel(BaseModel):
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        extra="ignore",
    )


# =============================================================================
# Enums
# =============================================================================


class Type(str, Enum):
    TYPE_UNSPECIFIED = "TYPE_UNSPECIFIED"
    STRING = "STRING"
    NUMBER = "NUMBER"
    INTEGER = "INTEGER"
    BOOLEAN = "BOOLEAN"
    ARRAY = "ARRAY"
    OBJECT = "OBJECT"


class HarmCategory(str, Enum):
    HARM_CATEGORY_UNSPECIFIED = "HARM_CATEGORY_UNSPECIFIED"
    HARM_CATEGORY_HATE_SPEECH = "HARM_CATEGORY_HATE_SPEECH"
    HARM_CATEGORY_DANGEROUS_CONTENT = "HARM_CATEGORY_DANGEROUS_CONTENT"
    HARM_CATEGORY_HARASSMENT = "HARM_CATEGORY_HARASSMENT"
    HARM_CATEGORY_SEXUALLY_EXPLICIT = "HARM_CATEGORY_SEXUALLY_EXPLICIT"
    HARM_CATEGORY_CIVIC_INTEGRITY = "HARM_CATEGORY_CIVIC_INTEGRITY"


class HarmBlockThreshold(str, Enum):
    HARM_BLOCK_THRESHOLD_UNSPECIFIED = "HARM_BLOCK_THRESHOLD_UNSPECIFIED"
    BLOCK_LOW_AND_ABOVE = "BLOCK_LOW_AND_ABOVE"
    BLOCK_MEDIUM_AND_ABOVE = "BLOCK_MEDIUM_AND_ABOVE"
    BLOCK_ONLY_HIGH = "BLOCK_ONLY_HIGH"
    BLOCK_NONE = "BLOCK_NONE"
    OFF = "OFF"


class HarmBlockMethod(str, Enum):
    HARM_BLOCK_METHOD_UNSPECIFIED = "HARM_BLOCK_METHOD_UNSPECIFIED"
    SEVERITY = "SEVERITY"
    PROBABILITY = "PROBABILITY"


class FunctionCallingConfigMode(str, Enum):
    MODE_UNSPECIFIED = "MODE_UNSPECIFIED"
    AUTO = "AUTO"
    ANY = "ANY"
    NONE = "NONE"


class Modality(str, Enum):
    MODALITY_UNSPECIFIED = "MODALITY_UNSPECIFIED"
    TEXT = "TEXT"
    IMAGE = "IMAGE"
    AUDIO = "AUDIO"


class Language(str, Enum):
    LANGUAGE_UNSPECIFIED = "LANGUAGE_UNSPECIFIED"
    PYTHON = "PYTHON"


class Outcome(str, Enum):
    OUTCOME_UNSPECIFIED = "OUTCOME_UNSPECIFIED"
    OUTCOME_OK = "OUTCOME_OK"
    OUTCOME_FAILED = "OUTCOME_FAILED"
    OUTCOME_DEADLINE_EXCEEDED = "OUTCOME_DEADLINE_EXCEEDED"


class FileState(str, Enum):
    STATE_UNSPECIFIED = "STATE_UNSPECIFIED"
    PROCESSING = "PROCESSING"
    ACTIVE = "ACTIVE"
    FAILED = "FAILED"


# =============================================================================
# Transport options
# =============================================================================


class HttpOptions(_BaseModel):
    """Per-client or per-call HTTP settings.

    Unset fields fall back to the client configuration and then to the
    backend defaults. Per-call ``headers`` are merged over client headers.
    """

    base_url: str | None = None
    api_version: str | None = None
    headers: dict[str, str] | None = None
    timeout: float | None = None


class _RequestConfig(_BaseModel):
    http_options: HttpOptions | None = Field(default=None, exclude=True)


# =============================================================================
# Content
# =============================================================================


class VideoMetadata(_BaseModel):
    start_offset: str | None = None
    end_offset: str | None = None


class Blob(_BaseModel):
    mime_type: str | None = None
    data: Base64Bytes | None = None


class FileData(_BaseModel):
    file_uri: str | None = None
    mime_type: str | None = None


class FunctionCall(_BaseModel):
    id: str | None = None
    name: str | None = None
    args: dict[str, Any] | None = None


class FunctionResponse(_BaseModel):
    id: str | None = None
    name: str | None = None
    response: dict[str, Any] | None = None


class ExecutableCode(_BaseModel):
    code: str | None = None
    language: Language | None = None


class CodeExecutionResult(_BaseModel):
    outcome: Outcome | None = None
    output: str | None = None


class Part(_BaseModel):
    """One piece of a content turn. Exactly one payload field is expected."""

    video_metadata: VideoMetadata | None = None
    thought: bool | None = None
    code_execution_result: CodeExecutionResult | None = None
    executable_code: ExecutableCode | None = None
    file_data: FileData | None = None
    function_call: FunctionCall | None = None
    function_response: FunctionResponse | None = None
    inline_data: Blob | None = None
    text: str | None = None

    @classmethod
    def from_text(cls, text: str) -> Part:
        return cls(text=text)

    @classmethod
    def from_uri(cls, file_uri: str, mime_type: str) -> Part:
        return cls(file_data=FileData(file_uri=file_uri, mime_type=mime_type))

    @classmethod
    def from_bytes(cls, data: bytes, mime_type: str) -> Part:
        return cls(inline_data=Blob(data=data, mime_type=mime_type))

    @classmethod
    def from_function_call(cls, name: str, args: dict[str, Any]) -> Part:
        return cls(function_call=FunctionCall(name=name, args=args))

    @classmethod
    def from_function_response(cls, name: str, response: dict[str, Any]) -> Part:
        return cls(function_response=FunctionResponse(name=name, response=response))

    @classmethod
    def from_executable_code(cls, code: str, language: Language) -> Part:
        return cls(executable_code=ExecutableCode(code=code, language=language))

    @classmethod
    def from_code_execution_result(cls, outcome: Outcome, output: str) -> Part:
        return cls(code_execution_result=CodeExecutionResult(outcome=outcome, output=output))


class Content(_BaseModel):
    """A single conversation turn."""

    parts: list[Part] | None = None
    role: str | None = None

    @classmethod
    def from_parts(cls, parts: list[Part], role: str = "user") -> Content:
        return cls(parts=list(parts), role=role)

    @classmethod
    def from_text(cls, text: str, role: str = "user") -> Content:
        return cls(parts=[Part(text=text)], role=role)


def _coerce_instruction(value: Any) -> Any:
    if isinstance(value, str):
        return Content(parts=[Part(text=value)])
    if isinstance(value, Part):
        return Content(parts=[value])
    return value


SystemInstruction = Annotated[Content | None, BeforeValidator(_coerce_instruction)]


# =============================================================================
# Schema and tools
# =============================================================================


class Schema(_BaseModel):
    """OpenAPI-style schema subset understood by both backends."""

    any_of: list[Schema] | None = None
    default: Any | None = None
    description: str | None = None
    enum: list[str] | None = None
    example: Any | None = None
    format: str | None = None
    items: Schema | None = None
    max_items: Int64 | None = None
    max_length: Int64 | None = None
    max_properties: Int64 | None = None
    maximum: float | None = None
    min_items: Int64 | None = None
    min_length: Int64 | None = None
    min_properties: Int64 | None = None
    minimum: float | None = None
    nullable: bool | None = None
    pattern: str | None = None
    properties: dict[str, Schema] | None = None
    property_ordering: list[str] | None = None
    required: list[str] | None = None
    title: str | None = None
    type: Type | None = None


class FunctionDeclaration(_BaseModel):
    name: str | None = None
    description: str | None = None
    parameters: Schema | None = None
    response: Schema | None = None


class GoogleSearch(_BaseModel):
    pass


class DynamicRetrievalConfig(_BaseModel):
    mode: str | None = None
    dynamic_threshold: float | None = None


class GoogleSearchRetrieval(_BaseModel):
    dynamic_retrieval_config: DynamicRetrievalConfig | None = None


class VertexAISearch(_BaseModel):
    datastore: str | None = None


class Retrieval(_BaseModel):
    disable_attribution: bool | None = None
    vertex_ai_search: VertexAISearch | None = None


class ToolCodeExecution(_BaseModel):
    pass


class Tool(_BaseModel):
    function_declarations: list[FunctionDeclaration] | None = None
    retrieval: Retrieval | None = None
    google_search: GoogleSearch | None = None
    google_search_retrieval: GoogleSearchRetrieval | None = None
    code_execution: ToolCodeExecution | None = None


class FunctionCallingConfig(_BaseModel):
    mode: FunctionCallingConfigMode | None = None
    allowed_function_names: list[str] | None = None


class ToolConfig(_BaseModel):
    function_calling_config: FunctionCallingConfig | None = None


# =============================================================================
# Generation
# =============================================================================


class SafetySetting(_BaseModel):
    method: HarmBlockMethod | None = None
    category: HarmCategory | None = None
    threshold: HarmBlockThreshold | None = None


class PrebuiltVoiceConfig(_BaseModel):
    voice_name: str | None = None


class VoiceConfig(_BaseModel):
    prebuilt_voice_config: PrebuiltVoiceConfig | None = None


class SpeechConfig(_BaseModel):
    voice_config: VoiceConfig | None = None
    language_code: str | None = None


class ThinkingConfig(_BaseModel):
    include_thoughts: bool | None = None
    thinking_budget: int | None = None


class GenerateContentConfig(_RequestConfig):
    """Optional model parameters for ``generate_content``.

    ``system_instruction``, ``tools``, ``tool_config``, ``safety_settings``,
    ``labels`` and ``cached_content`` are sent next to the contents; the rest
    travels inside the backend's ``generationConfig``.
    """

    system_instruction: SystemInstruction = None
    temperature: float | None = None
    top_p: float | None = None
    top_k: float | None = None
    candidate_count: int | None = None
    max_output_tokens: int | None = None
    stop_sequences: list[str] | None = None
    response_logprobs: bool | None = None
    logprobs: int | None = None
    presence_penalty: float | None = None
    frequency_penalty: float | None = None
    seed: int | None = None
    response_mime_type: str | None = None
    response_schema: Schema | None = None
    routing_config: dict[str, Any] | None = None
    safety_settings: list[SafetySetting] | None = None
    tools: list[Tool] | None = None
    tool_config: ToolConfig | None = None
    labels: dict[str, str] | None = None
    cached_content: str | None = None
    response_modalities: list[Modality] | None = None
    media_resolution: str | None = None
    speech_config: SpeechConfig | None = None
    audio_timestamp: bool | None = None
    thinking_config: ThinkingConfig | None = None


class SafetyRating(_BaseModel):
    blocked: bool | None = None
    category: str | None = None
    probability: str | None = None
    probability_score: float | None = None
    severity: str | None = None
    severity_score: float | None = None


class Citation(_BaseModel):
    start_index: int | None = None
    end_index: int | None = None
    uri: str | None = None
    title: str | None = None
    license: str | None = None
    publication_date: Date | None = None


class CitationMetadata(_BaseModel):
    citations: list[Citation] | None = None


class Candidate(_BaseModel):
    content: Content | None = None
    citation_metadata: CitationMetadata | None = None
    finish_message: str | None = None
    token_count: int | None = None
    finish_reason: str | None = None
    avg_logprobs: float | None = None
    grounding_metadata: dict[str, Any] | None = None
    index: int | None = None
    logprobs_result: dict[str, Any] | None = None
    safety_ratings: list[SafetyRating] | None = None


class PromptFeedback(_BaseModel):
    block_reason: str | None = None
    block_reason_message: str | None = None
    safety_ratings: list[SafetyRating] | None = None


class UsageMetadata(_BaseModel):
    cached_content_token_count: int | None = None
    candidates_token_count: int | None = None
    prompt_token_count: int | None = None
    thoughts_token_count: int | None = None
    tool_use_prompt_token_count: int | None = None
    total_token_count: int | None = None


class GenerateContentResponse(_BaseModel):
    candidates: list[Candidate] | None = None
    create_time: datetime.datetime | None = None
    response_id: str | None = None
    model_version: str | None = None
    prompt_feedback: PromptFeedback | None = None
    usage_metadata: UsageMetadata | None = None

    def _first_parts(self) -> list[Part]:
        if not self.candidates:
            return []
        if len(self.candidates) > 1:
            logger.debug(
                "Response has %d candidates; reading the first one.", len(self.candidates)
            )
        content = self.candidates[0].content
        return list(content.parts or []) if content is not None else []

    @property
    def text(self) -> str | None:
        """Concatenated non-thought text of the first candidate, or None."""
        texts = [
            part.text
            for part in self._first_parts()
            if part.text is not None and not part.thought
        ]
        return "".join(texts) if texts else None

    @property
    def function_calls(self) -> list[FunctionCall] | None:
        calls = [part.function_call for part in self._first_parts() if part.function_call]
        return calls or None

    @property
    def executable_code(self) -> str | None:
        for part in self._first_parts():
            if part.executable_code is not None:
                return part.executable_code.code
        return None

    @property
    def code_execution_result(self) -> str | None:
        for part in self._first_parts():
            if part.code_execution_result is not None:
                return part.code_execution_result.output
        return None


# =============================================================================
# Tokens and embeddings
# =============================================================================


class CountTokensConfig(_RequestConfig):
    system_instruction: SystemInstruction = None
    tools: list[Tool] | None = None
    generation_config: dict[str, Any] | None = None


class CountTokensResponse(_BaseModel):
    total_tokens: int | None = None
    cached_content_token_count: int | None = None


class ComputeTokensConfig(_RequestConfig):
    pass


class TokensInfo(_BaseModel):
    role: str | None = None
    token_ids: list[Int64] | None = None
    tokens: list[Base64Bytes] | None = None


class ComputeTokensResponse(_BaseModel):
    tokens_info: list[TokensInfo] | None = None


class EmbedContentConfig(_RequestConfig):
    task_type: str | None = None
    title: str | None = None
    output_dimensionality: int | None = None
    mime_type: str | None = None
    auto_truncate: bool | None = None


class ContentEmbeddingStatistics(_BaseModel):
    truncated: bool | None = None
    token_count: float | None = None


class ContentEmbedding(_BaseModel):
    values: list[float] | None = None
    statistics: ContentEmbeddingStatistics | None = None


class EmbedContentMetadata(_BaseModel):
    billable_character_count: int | None = None


class EmbedContentResponse(_BaseModel):
    embeddings: list[ContentEmbedding] | None = None
    metadata: EmbedContentMetadata | None = None


# =============================================================================
# Models
# =============================================================================


class Model(_BaseModel):
    name: str | None = None
    display_name: str | None = None
    description: str | None = None
    version: str | None = None
    input_token_limit: int | None = None
    output_token_limit: int | None = None
    supported_actions: list[str] | None = None
    labels: dict[str, str] | None = None


class GetModelConfig(_RequestConfig):
    pass


class ListModelsConfig(_RequestConfig):
    page_size: int | None = None
    page_token: str | None = None
    filter: str | None = None
    query_base: bool | None = None


class ListModelsResponse(_BaseModel):
    next_page_token: str | None = None
    models: list[Model] | None = None


# =============================================================================
# Files
# =============================================================================


class FileStatus(_BaseModel):
    code: int | None = None
    message: str | None = None
    details: list[dict[str, Any]] | None = None


class File(_BaseModel):
    name: str | None = None
    display_name: str | None = None
    mime_type: str | None = None
    size_bytes: Int64 | None = None
    create_time: datetime.datetime | None = None
    expiration_time: datetime.datetime | None = None
    update_time: datetime.datetime | None = None
    sha256_hash: str | None = None
    uri: str | None = None
    download_uri: str | None = None
    state: FileState | None = None
    source: str | None = None
    video_metadata: dict[str, Any] | None = None
    error: FileStatus | None = None


class UploadFileConfig(_RequestConfig):
    name: str | None = None
    mime_type: str | None = None
    display_name: str | None = None


class UploadFileResponse(_BaseModel):
    file: File | None = None


class GetFileConfig(_RequestConfig):
    pass


class DeleteFileConfig(_RequestConfig):
    pass


class DeleteFileResponse(_BaseModel):
    pass


class DownloadFileConfig(_RequestConfig):
    pass


class ListFilesConfig(_RequestConfig):
    page_size: int | None = None
    page_token: str | None = None


class ListFilesResponse(_BaseModel):
    next_page_token: str | None = None
    files: list[File] | None = None


# =============================================================================
# Live
# =============================================================================


class LiveConnectConfig(_BaseModel):
    """Session parameters sent once in the setup frame."""

    response_modalities: list[Modality] | None = None
    temperature: float | None = None
    top_p: float | None = None
    top_k: float | None = None
    max_output_tokens: int | None = None
    seed: int | None = None
    speech_config: SpeechConfig | None = None
    system_instruction: SystemInstruction = None
    tools: list[Tool] | None = None


class LiveClientSetup(_BaseModel):
    model: str | None = None
    generation_config: dict[str, Any] | None = None
    system_instruction: Content | None = None
    tools: list[Tool] | None = None


class LiveClientContent(_BaseModel):
    turns: list[Content] | None = None
    turn_complete: bool | None = None


class LiveClientRealtimeInput(_BaseModel):
    media_chunks: list[Blob] | None = None


class LiveClientToolResponse(_BaseModel):
    function_responses: list[FunctionResponse] | None = None


class LiveClientMessage(_BaseModel):
    """Envelope for one client frame. Exactly one field should be set."""

    setup: LiveClientSetup | None = None
    client_content: LiveClientContent | None = None
    realtime_input: LiveClientRealtimeInput | None = None
    tool_response: LiveClientToolResponse | None = None


class LiveServerSetupComplete(_BaseModel):
    pass


class LiveServerContent(_BaseModel):
    model_turn: Content | None = None
    turn_complete: bool | None = None
    interrupted: bool | None = None
    generation_complete: bool | None = None


class LiveServerToolCall(_BaseModel):
    function_calls: list[FunctionCall] | None = None


class LiveServerToolCallCancellation(_BaseModel):
    ids: list[str] | None = None


class LiveServerMessage(_BaseModel):
    setup_complete: LiveServerSetupComplete | None = None
    server_content: LiveServerContent | None = None
    tool_call: LiveServerToolCall | None = None
    tool_call_cancellation: LiveServerToolCallCancellation | None = None
    usage_metadata: UsageMetadata | None = None

    def _turn_parts(self) -> list[Part]:
        content = self.server_content
        if content is None or content.model_turn is None:
            return []
        return list(content.model_turn.parts or [])

    @property
    def text(self) -> str | None:
        texts = [part.text for part in self._turn_parts() if part.text is not None]
        return "".join(texts) if texts else None

    @property
    def data(self) -> bytes | None:
        chunks = [
            part.inline_data.data
            for part in self._turn_parts()
            if part.inline_data is not None and part.inline_data.data is not None
        ]
        return b"".join(chunks) if chunks else None
