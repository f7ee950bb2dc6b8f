"""Field tables for realtime session frames."""

from __future__ import annotations

from castor._transformers import t_model_full_name
from castor.converters._engine import Direction, field, registry

TO_WIRE = Direction.TO_WIRE
FROM_WIRE = Direction.FROM_WIRE

# Zero is a meaningful setting for these.
_ZERO_MEANINGFUL = frozenset({"temperature", "topP", "topK", "seed"})

_GENERATION_FIELDS = (
    "responseModalities",
    "temperature",
    "topP",
    "topK",
    "maxOutputTokens",
    "seed",
    "speechConfig",
)

# Connect config lands inside the setup envelope of the parent frame.
registry.define(
    "LiveConnectConfig",
    TO_WIRE,
    common=(
        *(
            field(
                name,
                f"setup.generationConfig.{name}",
                parent=True,
                keep_zero=name in _ZERO_MEANINGFUL,
            )
            for name in _GENERATION_FIELDS
        ),
        field("systemInstruction", "setup.systemInstruction", nested="Content", parent=True),
        field("tools", "setup.tools", nested="Tool", each=True, parent=True),
    ),
)

registry.define(
    "LiveConnectParameters",
    TO_WIRE,
    common=(
        field("model", "setup.model", transform=t_model_full_name),
        field("config", nested="LiveConnectConfig"),
    ),
)

registry.define(
    "LiveClientSetup",
    TO_WIRE,
    common=(
        field("model", transform=t_model_full_name),
        field("generationConfig"),
        field("systemInstruction", nested="Content"),
        field("tools", nested="Tool", each=True),
    ),
)

registry.define(
    "LiveClientContent",
    TO_WIRE,
    common=(
        field("turns", nested="Content", each=True),
        field("turnComplete", keep_zero=True),
    ),
)

registry.define("LiveClientRealtimeInput", TO_WIRE, common=(field("mediaChunks"),))

registry.define(
    "LiveClientToolResponse",
    TO_WIRE,
    common=(field("functionResponses", nested="FunctionResponse", each=True),),
)

# The message envelope writes its single variant into the parent frame.
registry.define(
    "LiveClientMessage",
    TO_WIRE,
    common=(
        field("setup", nested="LiveClientSetup", parent=True),
        field("clientContent", nested="LiveClientContent", parent=True),
        field("realtimeInput", nested="LiveClientRealtimeInput", parent=True),
        field("toolResponse", nested="LiveClientToolResponse", parent=True),
    ),
)

registry.define(
    "LiveSendParameters",
    TO_WIRE,
    common=(field("input", nested="LiveClientMessage"),),
)

registry.define("LiveServerSetupComplete", FROM_WIRE)

registry.define(
    "LiveServerContent",
    FROM_WIRE,
    common=(
        field("modelTurn", nested="Content"),
        field("turnComplete"),
        field("interrupted"),
        field("generationComplete"),
    ),
)

registry.define(
    "LiveServerToolCall",
    FROM_WIRE,
    common=(field("functionCalls", nested="FunctionCall", each=True),),
)

registry.define("LiveServerToolCallCancellation", FROM_WIRE, common=(field("ids"),))

registry.define(
    "LiveServerMessage",
    FROM_WIRE,
    common=(
        field("setupComplete", nested="LiveServerSetupComplete", keep_zero=True),
        field("serverContent", nested="LiveServerContent"),
        field("toolCall", nested="LiveServerToolCall"),
        field("toolCallCancellation", nested="LiveServerToolCallCancellation"),
        field("usageMetadata"),
    ),
)
