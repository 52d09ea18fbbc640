# Liveness endpoint - cheap connectivity check used by the CLI's `ping`

from fastapi import APIRouter

from clipconvert import __version__

router = APIRouter()


@router.get("/ping")
async def ping():
    return {"status": "online", "message": "Pong", "service": "clipconvert", "version": __version__}
