"""Models resource: generation, token counting, embeddings and model metadata."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any

from castor._resource import BaseModule
from castor._transformers import coerce_contents, coerce_embed_contents
from castor.pagers import AsyncPager
from castor.types import (
    ComputeTokensConfig,
    ComputeTokensResponse,
    CountTokensConfig,
    CountTokensResponse,
    EmbedContentConfig,
    EmbedContentResponse,
    GenerateContentConfig,
    GenerateContentResponse,
    GetModelConfig,
    ListModelsConfig,
    ListModelsResponse,
    Model,
)

if TYPE_CHECKING:
    from castor._streaming import ResponseStream

logger = logging.getLogger(__name__)


class Models(BaseModule):
    """Calls under ``models/`` (Gemini API) or ``publishers/*/models/`` (Vertex AI)."""

    async def generate_content(
        self,
        *,
        model: str,
        contents: Any,
        config: GenerateContentConfig | None = None,
    ) -> GenerateContentResponse:
        """Generate a single response.

        Args:
            model: Model name, e.g. ``"gemini-2.0-flash"``.
            contents: Text, parts, contents, or a list mixing them.
            config: Optional generation parameters.

        Returns:
            The typed response; see ``response.text`` for the common case.
        """
        return await self._call(
            "post",
            "{model}:generateContent",
            "GenerateContentParameters",
            {"model": model, "contents": coerce_contents(contents), "config": config},
            "GenerateContentResponse",
            GenerateContentResponse,
        )

    async def generate_content_stream(
        self,
        *,
        model: str,
        contents: Any,
        config: GenerateContentConfig | None = None,
    ) -> ResponseStream[GenerateContentResponse]:
        """Generate a response as a stream of partial responses.

        Example:
            async with await client.models.generate_content_stream(
                model="gemini-2.0-flash", contents="Tell me a story"
            ) as stream:
                async for chunk in stream:
                    print(chunk.text, end="")
        """
        return await self._stream(
            "{model}:streamGenerateContent",
            "GenerateContentParameters",
            {"model": model, "contents": coerce_contents(contents), "config": config},
            "GenerateContentResponse",
            GenerateContentResponse,
        )

    async def count_tokens(
        self,
        *,
        model: str,
        contents: Any,
        config: CountTokensConfig | None = None,
    ) -> CountTokensResponse:
        return await self._call(
            "post",
            "{model}:countTokens",
            "CountTokensParameters",
            {"model": model, "contents": coerce_contents(contents), "config": config},
            "CountTokensResponse",
            CountTokensResponse,
        )

    async def compute_tokens(
        self,
        *,
        model: str,
        contents: Any,
        config: ComputeTokensConfig | None = None,
    ) -> ComputeTokensResponse:
        """Return token ids and pieces for the contents. Vertex AI only."""
        return await self._call(
            "post",
            "{model}:computeTokens",
            "ComputeTokensParameters",
            {"model": model, "contents": coerce_contents(contents), "config": config},
            "ComputeTokensResponse",
            ComputeTokensResponse,
        )

    async def embed_content(
        self,
        *,
        model: str,
        contents: Any,
        config: EmbedContentConfig | None = None,
    ) -> EmbedContentResponse:
        """Embed each string, part or content as its own vector."""
        return await self._call(
            "post",
            "{model}:{method}",
            "EmbedContentParameters",
            {"model": model, "contents": coerce_embed_contents(contents), "config": config},
            "EmbedContentResponse",
            EmbedContentResponse,
        )

    async def get(self, *, model: str, config: GetModelConfig | None = None) -> Model:
        return await self._call(
            "get",
            "{name}",
            "GetModelParameters",
            {"model": model, "config": config},
            "Model",
            Model,
        )

    async def _list(self, config: ListModelsConfig) -> ListModelsResponse:
        if config.query_base is None:
            config = config.model_copy(update={"query_base": True})
        return await self._call(
            "get",
            "{models_url}",
            "ListModelsParameters",
            {"config": config},
            "ListModelsResponse",
            ListModelsResponse,
        )

    async def list(self, *, config: ListModelsConfig | None = None) -> AsyncPager[Model]:
        """Page through base models, or tuned models with ``query_base=False``."""
        return AsyncPager("models", self._list, config, ListModelsConfig)
