from fastapi import APIRouter, HTTPException, Request

from ...models.job import JobConfig
from ...sandbox import SandboxError

router = APIRouter(prefix="/api/allocation", tags=["allocation"])


@router.post("/start")
async def start_allocation(config: JobConfig, request: Request):
    try:
        return request.app.state.engine.start(config)
    except SandboxError as exc:
        raise HTTPException(status_code=409, detail=str(exc))


@router.get("/status")
async def allocation_status(request: Request):
    return request.app.state.engine.status()


@router.get("/live-matches")
async def live_matches(request: Request):
    return request.app.state.engine.live_matches()
