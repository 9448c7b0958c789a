"""
SpotPulse – API Routes (FastAPI)
==================================
Endpoints de solo lectura para monitorizar el motor.

  GET  /api/health     → health check
  GET  /api/status     → estado completo (feed, pipeline, estrategia, ledger)
  GET  /api/ledger     → saldos, PnL realizado y contadores
  GET  /api/position   → posición abierta (o null)
  GET  /api/outcomes   → últimos outcomes (más recientes primero)
"""

from __future__ import annotations

from fastapi import APIRouter, HTTPException, Query

from spotpulse.shared.logging.logger import get_logger

logger = get_logger("api.routes")

router = APIRouter(prefix="/api")

# Contenedor inyectado desde main.py
_container = None


def init_routes(container) -> None:
    """Inyectar el contenedor al arrancar."""
    global _container
    _container = container


def _require_container():
    if _container is None:
        raise HTTPException(status_code=503, detail="Engine not ready")
    return _container


@router.get("/health")
async def health() -> dict:
    feed_connected = False
    if _container is not None and _container._feed is not None:
        feed_connected = _container.feed.stats["connected"]
    return {
        "status": "ok",
        "ready": _container is not None,
        "feed_connected": feed_connected,
    }


@router.get("/status")
async def status() -> dict:
    c = _require_container()
    return {
        "strategy": c.evaluator.snapshot(),
        "feed": c.feed.stats,
        "pipeline": c.process_update.stats,
        "windows": c.aggregator.snapshot(),
        "engine": c.engine_state.snapshot(),
        "ledger": c.ledger.snapshot(),
        "notifications": c.dispatcher.stats,
        "event_bus": c.event_bus.stats,
    }


@router.get("/ledger")
async def ledger() -> dict:
    return _require_container().ledger.snapshot()


@router.get("/position")
async def position() -> dict:
    current = _require_container().ledger.position
    return {"position": current.to_dict() if current else None}


@router.get("/outcomes")
async def outcomes(limit: int = Query(default=50, ge=1, le=500)) -> dict:
    items = _require_container().dispatcher.recent(limit)
    return {"count": len(items), "outcomes": items}
