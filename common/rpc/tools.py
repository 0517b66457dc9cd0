from typing import Any

LOOKUP_ORDER = "lookup_order"

LOOKUP_ORDER_TOOL: dict[str, Any] = {
    "name": LOOKUP_ORDER,
    "description": (
        "Looks up order details by order ID. Returns status, delivery estimate, "
        "tracking number, carrier, and last update time."
    ),
    "inputSchema": {
        "type": "object",
        "properties": {
            "order_id": {
                "type": "string",
                "description": "The order ID to look up (e.g., 'TR-10001')",
            },
        },
        "required": ["order_id"],
    },
}

TOOLS: tuple[dict[str, Any], ...] = (LOOKUP_ORDER_TOOL,)


def tool_names() -> list[str]:
    return [tool["name"] for tool in TOOLS]
