"""Health router."""

from fastapi import APIRouter, Request

health_router = APIRouter(tags=["Health"])


@health_router.get("/health")
async def health_check(request: Request) -> dict:
    """Liveness plus store connectivity."""
    return {"status": "ok", "store": request.app.state.kv_store.connected}
