import json
import logging

from fastapi import APIRouter, Depends, Request
from fastapi.responses import JSONResponse

from api.app.auth import require_auth
from api.app.request_context import get_request_id
from common.rpc.dispatcher import RpcDispatcher, get_dispatcher
from common.rpc.types import JsonRpcErrorCode, error_response

LOG = logging.getLogger(__name__)


def _reject_constant(name: str):
    raise ValueError(f"non-standard JSON constant: {name}")


router = APIRouter(tags=["mcp"], dependencies=[Depends(require_auth)])


@router.post("/mcp")
async def mcp_endpoint(
    request: Request,
    request_id: str = Depends(get_request_id),
    dispatcher: RpcDispatcher = Depends(get_dispatcher),
):
    raw = await request.body()
    try:
        body = json.loads(raw, parse_constant=_reject_constant)
    except (ValueError, UnicodeDecodeError):
        LOG.warning("failed to parse request body", extra={"request_id": request_id})
        return JSONResponse(
            status_code=400,
            content=error_response(None, JsonRpcErrorCode.PARSE_ERROR, "Parse error: Invalid JSON"),
        )

    return await dispatcher.handle(body, request_id=request_id)
