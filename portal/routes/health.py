from fastapi import APIRouter
from fastapi.responses import JSONResponse

from portal.db import db_ping

router = APIRouter(tags=["health"])

@router.get("/health")
def health() -> dict:
    return {"status": "ok"}

# readiness probe
@router.get("/ready")
def ready():
    ok = db_ping()
    body = {"status": "ok" if ok else "unready", "checks": {"db": ok}}
    # 503 until the db is reachable
    return JSONResponse(status_code=200 if ok else 503, content=body)
