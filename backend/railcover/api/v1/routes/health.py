from fastapi import APIRouter, Depends

from railcover.core.context import ServiceContext
from railcover.core.deps import get_context

router = APIRouter(tags=["health"])


@router.get("/health")
def health():
    return {"status": "ok"}


@router.get("/cache/stats")
def cache_stats(ctx: ServiceContext = Depends(get_context)):
    return ctx.cache.snapshot()


@router.delete("/cache")
def clear_cache(ctx: ServiceContext = Depends(get_context)):
    return {"cleared": ctx.cache.clear()}
