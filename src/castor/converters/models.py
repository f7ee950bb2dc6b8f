"""Field tables for the models endpoints."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

from castor._transformers import (
    t_cached_content_name,
    t_extract_models,
    t_model,
    t_models_url,
)
from castor.converters._engine import Direction, field, registry, unsupported

if TYPE_CHECKING:
    from castor.converters._engine import ConverterSet

TO_WIRE = Direction.TO_WIRE
FROM_WIRE = Direction.FROM_WIRE


def _constant(value: str) -> Any:
    return lambda converters, _: value


def _embed_texts(converters: ConverterSet, contents: Any) -> list[str]:
    """Vertex embeddings take one plain string per instance."""
    del converters
    texts = []
    for content in contents or []:
        parts = (content.get("parts") if isinstance(content, dict) else None) or []
        texts.append("".join(part.get("text", "") for part in parts if isinstance(part, dict)))
    return texts


# =============================================================================
# generateContent / streamGenerateContent
# =============================================================================

registry.define(
    "GenerateContentConfig",
    TO_WIRE,
    common=(
        field("systemInstruction", nested="Content", parent=True),
        field("temperature", keep_zero=True),
        field("topP", keep_zero=True),
        field("topK", keep_zero=True),
        field("candidateCount"),
        field("maxOutputTokens"),
        field("stopSequences"),
        field("responseLogprobs"),
        field("logprobs"),
        field("presencePenalty", keep_zero=True),
        field("frequencyPenalty", keep_zero=True),
        field("seed", keep_zero=True),
        field("responseMimeType"),
        field("responseSchema", nested="Schema"),
        field("safetySettings", nested="SafetySetting", each=True, parent=True),
        field("tools", nested="Tool", each=True, parent=True),
        field("toolConfig", nested="ToolConfig", parent=True),
        field("cachedContent", transform=t_cached_content_name, parent=True),
        field("responseModalities"),
        field("mediaResolution"),
        field("speechConfig"),
        field("thinkingConfig"),
    ),
    gemini=(
        unsupported("routingConfig"),
        unsupported("labels"),
        unsupported("audioTimestamp"),
    ),
    vertex=(
        field("routingConfig"),
        field("labels", parent=True),
        field("audioTimestamp"),
    ),
)

registry.define(
    "GenerateContentParameters",
    TO_WIRE,
    common=(
        field("model", "_url.model", transform=t_model),
        field("contents", nested="Content", each=True),
        field("config", "generationConfig", nested="GenerateContentConfig"),
    ),
)

registry.define(
    "Candidate",
    FROM_WIRE,
    common=(
        field("content", nested="Content"),
        field("citationMetadata", nested="CitationMetadata"),
        field("finishMessage"),
        field("tokenCount"),
        field("finishReason"),
        field("avgLogprobs"),
        field("groundingMetadata"),
        field("index", keep_zero=True),
        field("logprobsResult"),
        field("safetyRatings"),
    ),
)

registry.define(
    "GenerateContentResponse",
    FROM_WIRE,
    common=(
        field("candidates", nested="Candidate", each=True),
        field("responseId"),
        field("modelVersion"),
        field("promptFeedback"),
        field("usageMetadata"),
    ),
    vertex=(field("createTime"),),
)

# =============================================================================
# countTokens / computeTokens
# =============================================================================

registry.define(
    "CountTokensConfig",
    TO_WIRE,
    gemini=(
        unsupported("systemInstruction"),
        unsupported("tools"),
        unsupported("generationConfig"),
    ),
    vertex=(
        field("systemInstruction", nested="Content", parent=True),
        field("tools", nested="Tool", each=True, parent=True),
        field("generationConfig", parent=True),
    ),
)

registry.define(
    "CountTokensParameters",
    TO_WIRE,
    common=(
        field("model", "_url.model", transform=t_model),
        field("contents", nested="Content", each=True),
        field("config", nested="CountTokensConfig"),
    ),
)

registry.define(
    "CountTokensResponse",
    FROM_WIRE,
    common=(field("totalTokens", keep_zero=True),),
    gemini=(field("cachedContentTokenCount", keep_zero=True),),
)

registry.define(
    "ComputeTokensParameters",
    TO_WIRE,
    gemini=None,
    vertex=(
        field("model", "_url.model", transform=t_model),
        field("contents", nested="Content", each=True),
    ),
)

registry.define(
    "ComputeTokensResponse",
    FROM_WIRE,
    gemini=None,
    vertex=(field("tokensInfo"),),
)

# =============================================================================
# embedContent
# =============================================================================

registry.define(
    "EmbedContentConfig",
    TO_WIRE,
    gemini=(
        field("taskType", "requests[].taskType", parent=True),
        field("title", "requests[].title", parent=True),
        field("outputDimensionality", "requests[].outputDimensionality", parent=True),
        unsupported("mimeType"),
        unsupported("autoTruncate"),
    ),
    vertex=(
        field("taskType", "instances[].task_type", parent=True),
        field("title", "instances[].title", parent=True),
        field("outputDimensionality", "parameters.outputDimensionality", parent=True),
        field("mimeType", "instances[].mimeType", parent=True),
        field("autoTruncate", "parameters.autoTruncate", parent=True, keep_zero=True),
    ),
)

# Per-request fields are broadcast onto the request list, so contents go first.
registry.define(
    "EmbedContentParameters",
    TO_WIRE,
    gemini=(
        field("model", "_url.method", transform=_constant("batchEmbedContents")),
        field("model", "_url.model", transform=t_model),
        field("contents", "requests[].content", nested="Content", each=True),
        field("config", nested="EmbedContentConfig"),
        field("model", "requests[].model", transform=t_model),
    ),
    vertex=(
        field("model", "_url.method", transform=_constant("predict")),
        field("model", "_url.model", transform=t_model),
        field("contents", "instances[].content", transform=_embed_texts),
        field("config", nested="EmbedContentConfig"),
    ),
)

registry.define(
    "ContentEmbedding",
    FROM_WIRE,
    common=(field("values"),),
    vertex=(field("statistics", nested="ContentEmbeddingStatistics"),),
)

registry.define(
    "ContentEmbeddingStatistics",
    FROM_WIRE,
    gemini=None,
    vertex=(
        field("truncated", keep_zero=True),
        field("token_count", "tokenCount", keep_zero=True),
    ),
)

registry.define(
    "EmbedContentResponse",
    FROM_WIRE,
    gemini=(field("embeddings", nested="ContentEmbedding", each=True),),
    vertex=(
        field("predictions[].embeddings", "embeddings", nested="ContentEmbedding", each=True),
        field("metadata"),
    ),
)

# =============================================================================
# models.get / models.list
# =============================================================================

registry.define(
    "Model",
    FROM_WIRE,
    common=(field("name"), field("displayName"), field("description")),
    gemini=(
        field("version"),
        field("inputTokenLimit"),
        field("outputTokenLimit"),
        field("supportedGenerationMethods", "supportedActions"),
    ),
    vertex=(field("versionId", "version"), field("labels")),
)

registry.define(
    "GetModelParameters",
    TO_WIRE,
    common=(field("model", "_url.name", transform=t_model),),
)

registry.define(
    "ListModelsConfig",
    TO_WIRE,
    common=(
        field("pageSize", "_query.pageSize", parent=True),
        field("pageToken", "_query.pageToken", parent=True),
        field("filter", "_query.filter", parent=True),
        field("queryBase", "_url.models_url", transform=t_models_url, parent=True),
    ),
)

registry.define(
    "ListModelsParameters",
    TO_WIRE,
    common=(field("config", nested="ListModelsConfig"),),
)

registry.define(
    "ListModelsResponse",
    FROM_WIRE,
    common=(
        field("nextPageToken"),
        field("_self", "models", transform=t_extract_models, nested="Model", each=True),
    ),
)
