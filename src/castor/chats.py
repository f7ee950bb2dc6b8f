"""Multi-turn chat sessions layered on ``Models.generate_content``."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any

from castor._transformers import coerce_contents
from castor.types import Content, GenerateContentConfig, GenerateContentResponse, Part

if TYPE_CHECKING:
    from collections.abc import AsyncIterator

    from castor.models import Models

logger = logging.getLogger(__name__)

_PAYLOAD_FIELDS = (
    "text",
    "inline_data",
    "file_data",
    "function_call",
    "function_response",
    "executable_code",
    "code_execution_result",
)


def _has_payload(part: Part) -> bool:
    return any(getattr(part, name) not in (None, "") for name in _PAYLOAD_FIELDS)


def _model_turn(responses: list[GenerateContentResponse]) -> Content:
    """Merge the first candidate of each response into one model turn.

    Parts without a payload (such as empty text) are dropped.
    """
    parts: list[Part] = []
    for response in responses:
        if not response.candidates:
            continue
        content = response.candidates[0].content
        if content is None:
            continue
        parts.extend(part for part in content.parts or [] if _has_payload(part))
    return Content(role="model", parts=parts)


def _is_valid_turn(content: Content) -> bool:
    return bool(content.parts)


class Chat:
    """One conversation with a model.

    History is appended only after a send succeeds; a failed send leaves it
    untouched. Do not send concurrently on the same chat.

    Each send replays the curated history (see :meth:`get_history`). A reply
    with no usable parts is still recorded as an empty model turn, so
    ``get_history()`` shows the exchange, but it is never sent back to the
    model together with the user turn that produced it.
    """

    def __init__(
        self,
        *,
        models: Models,
        model: str,
        config: GenerateContentConfig | None = None,
        history: list[Content] | None = None,
    ) -> None:
        self._models = models
        self._model = model
        self._config = config
        self._history: list[Content] = list(history or [])

    def _record(self, user_turns: list[Content], model_turn: Content) -> None:
        self._history.extend(user_turns)
        self._history.append(model_turn)

    def get_history(self, curated: bool = False) -> list[Content]:
        """Return the conversation so far.

        Args:
            curated: When True, drop user inputs whose model reply was empty
                together with that reply.
        """
        if not curated:
            return list(self._history)
        curated_history: list[Content] = []
        pending_user: list[Content] = []
        for content in self._history:
            if content.role != "model":
                pending_user.append(content)
                continue
            if _is_valid_turn(content):
                curated_history.extend(pending_user)
                curated_history.append(content)
            pending_user = []
        curated_history.extend(pending_user)
        return curated_history

    async def send_message(
        self, message: Any, *, config: GenerateContentConfig | None = None
    ) -> GenerateContentResponse:
        """Send ``message`` with the history and record both turns."""
        user_turns = coerce_contents(message)
        response = await self._models.generate_content(
            model=self._model,
            contents=[*self.get_history(curated=True), *user_turns],
            config=config or self._config,
        )
        self._record(user_turns, _model_turn([response]))
        return response

    async def send_message_stream(
        self, message: Any, *, config: GenerateContentConfig | None = None
    ) -> AsyncIterator[GenerateContentResponse]:
        """Stream the reply; history is recorded once the stream completes.

        Example:
            async for chunk in chat.send_message_stream("And then?"):
                print(chunk.text, end="")
        """
        user_turns = coerce_contents(message)
        stream = await self._models.generate_content_stream(
            model=self._model,
            contents=[*self.get_history(curated=True), *user_turns],
            config=config or self._config,
        )
        chunks: list[GenerateContentResponse] = []
        async with stream:
            async for chunk in stream:
                chunks.append(chunk)
                yield chunk
        self._record(user_turns, _model_turn(chunks))
        logger.debug("Recorded streamed turn from %d chunks", len(chunks))


class Chats:
    """Factory for :class:`Chat` sessions sharing one client."""

    def __init__(self, models: Models) -> None:
        self._models = models

    def create(
        self,
        *,
        model: str,
        config: GenerateContentConfig | None = None,
        history: list[Content] | None = None,
    ) -> Chat:
        return Chat(models=self._models, model=model, config=config, history=history)
