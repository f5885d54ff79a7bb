from fastapi import APIRouter, HTTPException, Request
from fastapi.responses import Response

router = APIRouter(tags=["results"])


@router.get("/api/allocations/latest")
async def latest_allocations(request: Request):
    result = request.app.state.engine.latest()
    if result is None:
        raise HTTPException(status_code=404, detail="No completed allocation")
    return result


@router.get("/api/download/allocations")
async def download_allocations(request: Request):
    content = request.app.state.engine.latest_csv()
    if content is None:
        raise HTTPException(status_code=404, detail="No completed allocation")
    return Response(
        content=content,
        media_type="text/csv",
        headers={"Content-Disposition": 'attachment; filename="allocations.csv"'},
    )
