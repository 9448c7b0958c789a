"""
SpotPulse – Main Application Entry Point
==========================================
Orquesta el motor: Binance feed + Window Aggregator + Signal Evaluator +
Position Ledger + Notificaciones, con una API HTTP de solo lectura.

ARQUITECTURA DE ARRANQUE:
  1. Configurar logging
  2. Crear el contenedor (las instancias se construyen perezosamente)
  3. Lifespan startup:
     a. Validar configuración (estrategia, notificador)   → fatal
     b. Prefetch de step sizes de todos los símbolos        → fatal
     c. Iniciar NotificationDispatcher (suscrito a outcome)
     d. Suscribir ProcessUpdateUseCase y lanzarlo como task
     e. Iniciar BinanceStreamClient
     f. Publicar EngineStarted
  4. Lifespan shutdown: orden inverso

FLUJO DE DATOS:
  Binance WS → BinanceStreamClient → EventBus(feed) → ProcessUpdateUseCase
       → WindowAggregator → SignalEvaluator → PositionLedger
       → EventBus(outcome) → NotificationDispatcher → Telegram / log

  uvicorn spotpulse.main:app --host 0.0.0.0 --port 8888
"""

from __future__ import annotations

import asyncio
import logging
from contextlib import asynccontextmanager

import uvicorn
from fastapi import FastAPI

from spotpulse import __version__
from spotpulse.container import init_container
from spotpulse.domain.events.domain_events import EngineStarted
from spotpulse.presentation.api.routes import init_routes, router
from spotpulse.shared.config.settings import settings
from spotpulse.shared.logging.logger import get_logger, setup_logging

# ─── Logging ────────────────────────────────────────────────────────────
setup_logging(logging.DEBUG if settings.debug else logging.INFO)
logger = get_logger("main")

# ─── Contenedor de Dependencias ─────────────────────────────────────────
container = init_container(settings)

_background_tasks: list[asyncio.Task] = []


@asynccontextmanager
async def lifespan(app: FastAPI):
    s = container.settings
    logger.info("=" * 60)
    logger.info("  SpotPulse v%s", __version__)
    logger.info("  Estrategia: %s", s.strategy)
    logger.info("  Símbolos: %s", ", ".join(s.symbols))
    logger.info("  Ventana: %d precios (min_history=%d)", s.window_capacity, s.min_history)
    logger.info(
        "  Ledger: %.2f %s, budget=%s, spread=%.3f%%",
        s.initial_quote_balance, s.quote_asset, s.budget, s.spread_pct * 100,
    )
    logger.info("  Notificador: %s", s.notifier)
    logger.info("=" * 60)

    container.validate()
    await container.metadata.prefetch(s.symbols)

    init_routes(container)

    await container.dispatcher.start()

    await container.process_update.subscribe()
    update_task = asyncio.create_task(
        container.process_update.start(), name="process-update-usecase"
    )
    _background_tasks.append(update_task)

    await container.feed.start()

    await container.dispatcher.publish(EngineStarted(
        strategy=s.strategy, symbols=tuple(s.symbols),
    ))
    logger.info("✓ Todos los componentes iniciados correctamente")

    yield

    # ── SHUTDOWN ──
    logger.info("Iniciando shutdown...")
    await container.feed.stop()
    await container.process_update.stop()

    for task in _background_tasks:
        if not task.done():
            task.cancel()
            try:
                await task
            except asyncio.CancelledError:
                pass
    _background_tasks.clear()

    await container.dispatcher.stop()
    await container.event_bus.unsubscribe_all()
    logger.info("✓ Shutdown completo")


app = FastAPI(
    title="SpotPulse",
    description="Motor de señales spot sobre streams de Binance con ejecución simulada",
    version=__version__,
    lifespan=lifespan,
)

app.include_router(router)


def run() -> None:
    """Entry point de consola: `spotpulse`."""
    uvicorn.run(
        "spotpulse.main:app",
        host=settings.host,
        port=settings.port,
        log_level="debug" if settings.debug else "info",
    )


if __name__ == "__main__":
    run()
