# bookshop/api/routers/health.py
from fastapi import APIRouter, Request
from fastapi.responses import JSONResponse

from bookshop.data.database import check_db
from bookshop.domain.schemas import HealthOut

router = APIRouter(tags=["health"])


@router.get("/health", response_model=HealthOut)
def health(request: Request):
    engine = request.app.state.engine

    # in-memory store, nothing to ping
    if engine is None:
        return HealthOut(status="ok", database="in-memory")

    if not check_db(engine):
        return JSONResponse(
            status_code=503,
            content=HealthOut(status="unhealthy", database="disconnected").model_dump(),
        )
    return HealthOut(status="ok", database="connected")
