"""JSON-RPC 2.0 dispatcher for the order-status tool server.

Handles ``initialize``, ``ping``, ``tools/list`` and ``tools/call``. Every path
returns a response envelope; nothing raised by a handler escapes ``handle``.
"""
from __future__ import annotations

import logging
from typing import Any, Awaitable, Callable, Dict, Optional

from pydantic import ValidationError

from api.app.config import settings
from common.format.agent_text import format_order_for_agent
from common.orders.lookup import OrderResolver, get_resolver
from common.rpc.tools import LOOKUP_ORDER, TOOLS, tool_names
from common.rpc.types import (
    JsonRpcErrorCode,
    LookupOrderArguments,
    RequestId,
    ToolCallParams,
    error_response,
    is_valid_request,
    success_response,
)

LOG = logging.getLogger(__name__)

Handler = Callable[[RequestId, Any, Optional[str]], Awaitable[Dict[str, Any]]]


def _validation_data(exc: ValidationError) -> list[dict[str, Any]]:
    return exc.errors(include_url=False, include_context=False, include_input=False)


class RpcDispatcher:
    def __init__(self, resolver: Optional[OrderResolver] = None) -> None:
        self._resolver = resolver
        self._handlers: Dict[str, Handler] = {
            "initialize": self._initialize,
            "ping": self._ping,
            "tools/list": self._tools_list,
            "tools/call": self._tools_call,
        }

    @property
    def resolver(self) -> OrderResolver:
        if self._resolver is None:
            self._resolver = get_resolver()
        return self._resolver

    async def handle(self, body: Any, request_id: Optional[str] = None) -> Dict[str, Any]:
        if not is_valid_request(body):
            LOG.warning("invalid JSON-RPC request structure", extra={"request_id": request_id})
            return error_response(
                None,
                JsonRpcErrorCode.INVALID_REQUEST,
                "Invalid JSON-RPC 2.0 request. Must have jsonrpc: '2.0', "
                "method (string), and id (string|number|null)",
            )

        method: str = body["method"]
        id_: RequestId = body["id"]
        params = body.get("params")
        LOG.info("processing request", extra={"request_id": request_id, "method": method})

        handler = self._handlers.get(method)
        if handler is None:
            LOG.warning("method not found", extra={"request_id": request_id, "method": method})
            return error_response(id_, JsonRpcErrorCode.METHOD_NOT_FOUND, f"Method not found: {method}")

        try:
            return await handler(id_, params, request_id)
        except Exception:
            LOG.exception("unexpected error in handler", extra={"request_id": request_id, "method": method})
            return error_response(id_, JsonRpcErrorCode.INTERNAL_ERROR, "Internal server error")

    async def _initialize(self, id_: RequestId, _params: Any, _request_id: Optional[str]) -> Dict[str, Any]:
        return success_response(
            id_,
            {
                "protocolVersion": settings.protocol_version,
                "capabilities": {"tools": {}},
                "serverInfo": {"name": settings.server_name, "version": settings.server_version},
            },
        )

    async def _ping(self, id_: RequestId, _params: Any, _request_id: Optional[str]) -> Dict[str, Any]:
        return success_response(id_, {"ok": True})

    async def _tools_list(self, id_: RequestId, _params: Any, _request_id: Optional[str]) -> Dict[str, Any]:
        return success_response(id_, {"tools": list(TOOLS)})

    async def _tools_call(self, id_: RequestId, params: Any, request_id: Optional[str]) -> Dict[str, Any]:
        try:
            call = ToolCallParams.model_validate(params)
        except ValidationError as exc:
            LOG.warning("invalid tools/call params", extra={"request_id": request_id})
            return error_response(
                id_,
                JsonRpcErrorCode.INVALID_PARAMS,
                "Invalid params: name and arguments are required",
                _validation_data(exc),
            )

        if call.name != LOOKUP_ORDER:
            LOG.warning("unknown tool", extra={"request_id": request_id, "tool": call.name})
            return error_response(
                id_,
                JsonRpcErrorCode.INVALID_PARAMS,
                f"Unknown tool: {call.name}. Available tools: {', '.join(tool_names())}",
            )

        try:
            args = LookupOrderArguments.model_validate(call.arguments)
        except ValidationError as exc:
            return error_response(
                id_,
                JsonRpcErrorCode.INVALID_PARAMS,
                "Invalid arguments: order_id is required and must be a non-empty string",
                _validation_data(exc),
            )

        order_id = args.order_id
        LOG.info("looking up order", extra={"request_id": request_id, "tool": call.name, "order_id": order_id})
        result = await self.resolver.resolve(order_id, request_id=request_id)

        if result.outcome == "not_found":
            return error_response(id_, JsonRpcErrorCode.ORDER_NOT_FOUND, f"Order not found: {order_id}")

        if result.outcome == "failed" or result.order is None:
            return error_response(
                id_,
                JsonRpcErrorCode.INTERNAL_ERROR,
                result.error or "Internal server error while looking up order",
            )

        order = result.order
        return success_response(
            id_,
            {
                "content": [{"type": "text", "text": format_order_for_agent(order)}],
                "structured": order.core_fields(),
            },
        )


_dispatcher: Optional[RpcDispatcher] = None


def get_dispatcher() -> RpcDispatcher:
    global _dispatcher
    if _dispatcher is None:
        _dispatcher = RpcDispatcher()
    return _dispatcher
