import logging
from datetime import datetime, timezone

from fastapi import FastAPI
from contextlib import asynccontextmanager

from api.app.config import settings
from api.app.db import dispose_engine
from api.app.log import configure_logging
from api.app.request_context import request_id_middleware
from api.app.routers.mcp import router as mcp_router
from api.app.routers.orders import router as orders_router

LOG = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    configure_logging(settings.log_level)
    LOG.info("starting %s", settings.server_name, extra={"env": settings.app_env, "port": settings.port})
    yield
    await dispose_engine()

app = FastAPI(lifespan=lifespan, title="Order Status MCP API", version=settings.server_version)

app.middleware("http")(request_id_middleware)

app.include_router(mcp_router)
app.include_router(orders_router)

@app.get("/health")
def health():
    return {
        "status": "OK",
        "service": settings.server_name,
        "version": app.version,
        "env": settings.app_env,
        "timestamp": datetime.now(timezone.utc).isoformat(),
    }


if __name__ == "__main__":
    import uvicorn

    uvicorn.run("api.app.main:app", host="0.0.0.0", port=settings.port)
