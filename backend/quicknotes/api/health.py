from fastapi import APIRouter, Depends

from quicknotes.api.deps import get_connection_monitor
from quicknotes.services.connection_status import ConnectionMonitor

router = APIRouter(prefix="/health", tags=["health"])


@router.get("")
def health(monitor: ConnectionMonitor = Depends(get_connection_monitor)) -> dict:
    return {"ok": True, **monitor.snapshot()}


@router.post("/check")
async def check_now(monitor: ConnectionMonitor = Depends(get_connection_monitor)) -> dict:
    await monitor.check()
    return {"ok": True, **monitor.snapshot()}
