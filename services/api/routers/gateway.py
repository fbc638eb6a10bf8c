"""
Gateway Flow - Gateway Actions Router
Proxies registration, binding and authentication to the remote gateway,
refreshing the live timeline after each step
"""
import asyncio
from log import get_logger
from fastapi import APIRouter, Depends, HTTPException

from config import settings
from gateway_client import GatewayError
from models import (
    AuthenticateRequest, BindRequest, SensorRegisterRequest, UserRegisterRequest,
)
from runtime import Runtime, get_runtime

logger = get_logger()
router = APIRouter()


async def _call(func, *args):
    try:
        return await asyncio.to_thread(func, *args)
    except GatewayError as e:
        raise HTTPException(status_code=502, detail=str(e)) from e


# ─── REGISTRATION ──────────────────────────────────────────

@router.post("/sensors", status_code=201)
async def register_sensor(req: SensorRegisterRequest, runtime: Runtime = Depends(get_runtime)):
    """Register a sensor; the gateway answers with its initial SID."""
    result = await _call(runtime.gateway.register_sensor, req.sensor_id)
    logger.info("sensor.registered", sensor_id=req.sensor_id)
    await runtime.poller.refresh_once()
    return result


@router.post("/users", status_code=201)
async def register_user(req: UserRegisterRequest, runtime: Runtime = Depends(get_runtime)):
    """Register a user; the gateway answers with the user's DID."""
    result = await _call(runtime.gateway.register_user, req.username, req.password)
    logger.info("user.registered", username=req.username)
    await runtime.poller.refresh_once()
    return result


@router.post("/bind")
async def bind(req: BindRequest, runtime: Runtime = Depends(get_runtime)):
    result = await _call(runtime.gateway.bind, req.username, req.sensor_id)
    logger.info("user.bound", username=req.username, sensor_id=req.sensor_id)
    await runtime.poller.refresh_once()
    return result


# ─── AUTHENTICATION ────────────────────────────────────────

@router.post("/authenticate")
async def authenticate(req: AuthenticateRequest, runtime: Runtime = Depends(get_runtime)):
    """
    Run one M1-M4 exchange while polling logs, so the timeline fills in live.
    Old logs are cleared first; polling stops after a short settle delay.
    """
    await _call(runtime.gateway.clear_logs)
    runtime.poller.clear()
    runtime.poller.start(settings.POLL_INTERVAL_MS)
    try:
        result = await _call(
            runtime.gateway.authenticate, req.username, req.password, req.sensor_id
        )
        logger.info("auth.finished", username=req.username, sensor_id=req.sensor_id, ok=result.get("ok"))
        await runtime.poller.refresh_once()
        return result
    finally:
        runtime.poller.settle(settings.SETTLE_DELAY_MS)


# ─── LOGS ──────────────────────────────────────────────────

@router.post("/logs/clear")
async def clear_logs(runtime: Runtime = Depends(get_runtime)):
    result = await _call(runtime.gateway.clear_logs)
    runtime.poller.clear()
    await runtime.poller.refresh_once()
    return result


# ─── REGISTRY VIEWS ────────────────────────────────────────

@router.get("/users")
async def list_users(runtime: Runtime = Depends(get_runtime)):
    return {"users": await _call(runtime.gateway.list_users)}


@router.get("/sensors")
async def list_sensors(runtime: Runtime = Depends(get_runtime)):
    return {"sensors": await _call(runtime.gateway.list_sensors)}


@router.get("/sensors/{sensor_id}/status")
async def sensor_status(sensor_id: str, runtime: Runtime = Depends(get_runtime)):
    status = await _call(runtime.gateway.sensor_status, sensor_id)
    if status is None:
        raise HTTPException(status_code=404, detail=f"No status available for {sensor_id}")
    return status
