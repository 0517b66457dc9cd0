import logging
from typing import Any

from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel

from api.app.auth import require_auth
from api.app.request_context import get_request_id
from common.format.agent_text import format_order_for_agent
from common.orders.lookup import OrderResolver, get_resolver

LOG = logging.getLogger(__name__)

router = APIRouter(tags=["orders"], dependencies=[Depends(require_auth)])


class LookupOrderPayload(BaseModel):
    order_id: Any = None


@router.post("/lookup-order")
async def lookup_order(
    payload: LookupOrderPayload,
    request_id: str = Depends(get_request_id),
    resolver: OrderResolver = Depends(get_resolver),
):
    order_id = payload.order_id
    if not isinstance(order_id, str) or not order_id.strip():
        raise HTTPException(status_code=400, detail="order_id is required and must be a non-empty string")

    LOG.info("REST lookup-order request", extra={"request_id": request_id, "order_id": order_id})

    result = await resolver.resolve(order_id, request_id=request_id)
    if result.outcome == "not_found":
        raise HTTPException(status_code=404, detail=f"Order with ID '{order_id}' was not found")
    if result.outcome == "failed" or result.order is None:
        raise HTTPException(status_code=500, detail=result.error or "Internal server error")

    order = result.order
    return {
        "order_id": order.order_id,
        "status": order.status,
        "eta": order.eta,
        "carrier": order.carrier,
        "tracking_number": order.tracking_number,
        "last_update": order.last_update,
        "issue_flag": order.issue_flag,
        "notes": order.notes,
        "formatted_text": format_order_for_agent(order),
    }
