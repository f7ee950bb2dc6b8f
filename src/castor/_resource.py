"""Shared plumbing for resource modules: marshal, convert, send, decode."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, TypeVar

from pydantic import BaseModel

from castor._bridge import from_node, to_node
from castor._paths import encode_query, format_map

if TYPE_CHECKING:
    from castor._api_client import ApiClient
    from castor._streaming import ResponseStream
    from castor.converters import ConverterSet
    from castor.types import HttpOptions

M = TypeVar("M", bound=BaseModel)


class PreparedRequest:
    """Wire body plus the path and query pieces split out of it."""

    __slots__ = ("body", "http_options", "query", "url_params")

    def __init__(
        self,
        body: dict[str, Any],
        url_params: dict[str, Any],
        query: dict[str, Any] | None,
        http_options: HttpOptions | None,
    ) -> None:
        self.body = body
        self.url_params = url_params
        self.query = query
        self.http_options = http_options

    def path(self, template: str, **extra_query: Any) -> str:
        path = format_map(template, self.url_params)
        query = encode_query({**(self.query or {}), **extra_query})
        return f"{path}?{query}" if query else path


class BaseModule:
    """Base for resource modules bound to one client's transport and converters."""

    def __init__(self, api_client: ApiClient, converters: ConverterSet) -> None:
        self._api_client = api_client
        self._converters = converters

    def _prepare(self, type_name: str, params: dict[str, Any]) -> PreparedRequest:
        config = params.get("config")
        http_options = getattr(config, "http_options", None)
        body = self._converters.to_wire(type_name, to_node(params))
        url_params = body.pop("_url", None) or {}
        query = body.pop("_query", None)
        body.pop("config", None)
        return PreparedRequest(body, url_params, query, http_options)

    def _decode(self, type_name: str, model: type[M], node: dict[str, Any]) -> M:
        return from_node(model, self._converters.from_wire(type_name, node))

    async def _call(
        self,
        method: str,
        template: str,
        params_type: str,
        params: dict[str, Any],
        response_type: str,
        response_model: type[M],
    ) -> M:
        prepared = self._prepare(params_type, params)
        node = await self._api_client.request(
            method, prepared.path(template), prepared.body, prepared.http_options
        )
        return self._decode(response_type, response_model, node)

    async def _stream(
        self,
        template: str,
        params_type: str,
        params: dict[str, Any],
        response_type: str,
        response_model: type[M],
    ) -> ResponseStream[M]:
        prepared = self._prepare(params_type, params)
        return await self._api_client.request_streamed(
            "post",
            prepared.path(template, alt="sse"),
            prepared.body,
            prepared.http_options,
            lambda node: self._decode(response_type, response_model, node),
        )
