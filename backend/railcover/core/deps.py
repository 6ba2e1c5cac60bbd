from fastapi import HTTPException, Request

from railcover.core.context import ServiceContext


def get_context(request: Request) -> ServiceContext:
    ctx = getattr(request.app.state, "context", None)
    if ctx is None:
        raise HTTPException(status_code=503, detail="Service context not initialised")
    return ctx
