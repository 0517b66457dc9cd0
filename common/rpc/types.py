import math
from enum import IntEnum
from typing import Any, Optional, Union

from pydantic import BaseModel, Field, StrictStr

RequestId = Union[str, int, float, None]

JSONRPC_VERSION = "2.0"


class JsonRpcErrorCode(IntEnum):
    PARSE_ERROR = -32700
    INVALID_REQUEST = -32600
    METHOD_NOT_FOUND = -32601
    INVALID_PARAMS = -32602
    INTERNAL_ERROR = -32603
    ORDER_NOT_FOUND = -32004


class ToolCallParams(BaseModel):
    name: StrictStr
    arguments: dict[str, Any]


class LookupOrderArguments(BaseModel):
    order_id: StrictStr = Field(min_length=1)


def is_valid_id(value: Any) -> bool:
    if isinstance(value, bool):
        return False
    if isinstance(value, float):
        return math.isfinite(value)
    return value is None or isinstance(value, (str, int))


def is_valid_request(body: Any) -> bool:
    if not isinstance(body, dict):
        return False
    return (
        body.get("jsonrpc") == JSONRPC_VERSION
        and isinstance(body.get("method"), str)
        and "id" in body
        and is_valid_id(body["id"])
    )


def success_response(id_: RequestId, result: Any) -> dict[str, Any]:
    return {"jsonrpc": JSONRPC_VERSION, "id": id_, "result": result}


def error_response(
    id_: RequestId,
    code: JsonRpcErrorCode,
    message: str,
    data: Optional[Any] = None,
) -> dict[str, Any]:
    error: dict[str, Any] = {"code": int(code), "message": message}
    if data is not None:
        error["data"] = data
    return {"jsonrpc": JSONRPC_VERSION, "id": id_, "error": error}
