"""Field tables for content, schema and tool types shared by every endpoint."""

from __future__ import annotations

from castor.converters._engine import Direction, field, registry, unsupported

TO_WIRE = Direction.TO_WIRE
FROM_WIRE = Direction.FROM_WIRE

_PART_PAYLOAD = (
    field("thought"),
    field("codeExecutionResult"),
    field("executableCode"),
    field("fileData"),
    field("inlineData"),
    field("text"),
)

registry.define(
    "Part",
    TO_WIRE,
    common=(
        *_PART_PAYLOAD,
        field("functionCall", nested="FunctionCall"),
        field("functionResponse", nested="FunctionResponse"),
    ),
    gemini=(unsupported("videoMetadata"),),
    vertex=(field("videoMetadata"),),
)
registry.define(
    "Part",
    FROM_WIRE,
    common=(
        *_PART_PAYLOAD,
        field("videoMetadata"),
        field("functionCall", nested="FunctionCall"),
        field("functionResponse", nested="FunctionResponse"),
    ),
)

# Vertex AI has no call ids; they are rejected outbound and dropped inbound.
registry.define(
    "FunctionCall",
    TO_WIRE,
    common=(field("name"), field("args", keep_zero=True)),
    gemini=(field("id"),),
    vertex=(unsupported("id"),),
)
registry.define(
    "FunctionCall",
    FROM_WIRE,
    common=(field("name"), field("args", keep_zero=True)),
    gemini=(field("id"),),
)
registry.define(
    "FunctionResponse",
    TO_WIRE,
    common=(field("name"), field("response", keep_zero=True)),
    gemini=(field("id"),),
    vertex=(unsupported("id"),),
)
registry.define(
    "FunctionResponse",
    FROM_WIRE,
    common=(field("name"), field("response", keep_zero=True)),
    gemini=(field("id"),),
)

for _direction in (TO_WIRE, FROM_WIRE):
    registry.define(
        "Content",
        _direction,
        common=(field("parts", nested="Part", each=True), field("role")),
    )

_SCHEMA_GEMINI_UNSUPPORTED = (
    "example",
    "pattern",
    "default",
    "maxLength",
    "minLength",
    "minProperties",
    "maxProperties",
)

registry.define(
    "Schema",
    TO_WIRE,
    common=(
        field("anyOf", nested="Schema", each=True),
        field("description"),
        field("enum"),
        field("format"),
        field("items", nested="Schema"),
        field("maxItems"),
        field("maximum", keep_zero=True),
        field("minItems"),
        field("minimum", keep_zero=True),
        field("nullable", keep_zero=True),
        field("properties", nested="Schema", mapping=True),
        field("propertyOrdering"),
        field("required"),
        field("title"),
        field("type"),
    ),
    gemini=tuple(unsupported(name) for name in _SCHEMA_GEMINI_UNSUPPORTED),
    vertex=tuple(field(name) for name in _SCHEMA_GEMINI_UNSUPPORTED),
)

registry.define(
    "FunctionDeclaration",
    TO_WIRE,
    common=(
        field("name"),
        field("description"),
        field("parameters", nested="Schema"),
    ),
    gemini=(unsupported("response"),),
    vertex=(field("response", nested="Schema"),),
)

registry.define(
    "Tool",
    TO_WIRE,
    common=(
        field("functionDeclarations", nested="FunctionDeclaration", each=True),
        field("googleSearch", keep_zero=True),
        field("googleSearchRetrieval", keep_zero=True),
        field("codeExecution", keep_zero=True),
    ),
    gemini=(unsupported("retrieval"),),
    vertex=(field("retrieval"),),
)

registry.define("ToolConfig", TO_WIRE, common=(field("functionCallingConfig"),))

registry.define(
    "SafetySetting",
    TO_WIRE,
    common=(field("category"), field("threshold")),
    gemini=(unsupported("method"),),
    vertex=(field("method"),),
)

registry.define(
    "Citation",
    FROM_WIRE,
    common=(
        field("startIndex", keep_zero=True),
        field("endIndex", keep_zero=True),
        field("uri"),
        field("title"),
        field("license"),
        field("publicationDate"),
    ),
)
registry.define(
    "CitationMetadata",
    FROM_WIRE,
    gemini=(field("citationSources", "citations", nested="Citation", each=True),),
    vertex=(field("citations", nested="Citation", each=True),),
)
