"""
SpotPulse – Settings (Pydantic BaseSettings)
=============================================
Configuración centralizada cargada desde variables de entorno / .env.
Se usa pydantic-settings para validación estricta al arranque.

Cada bloque corresponde a un componente del motor:
  Feed → Ventana → Indicadores → Evaluador → Ledger → Notificador
"""

from __future__ import annotations

from typing import Dict, List, Literal, Optional

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    # ─── Binance WebSocket ──────────────────────────────────────────────
    feed_ws_url: str = Field(
        default="wss://stream.binance.com:9443",
        description="Endpoint base de streams combinados de Binance",
    )
    feed_reconnect_delay: float = Field(
        default=2.0, description="Delay fijo (seg) antes de re-suscribirse tras una caída",
    )
    feed_open_timeout: float = Field(
        default=10.0, description="Timeout (seg) del handshake WebSocket",
    )

    # Símbolos a suscribir (pares spot)
    symbols: List[str] = Field(
        default=["ARUSDT"],
        description="Pares a vigilar (base + activo de cotización)",
    )
    candle_interval: str = Field(
        default="3m", description="Intervalo de kline para estrategias basadas en velas",
    )

    # ─── Metadatos de exchange (REST) ───────────────────────────────────
    exchange_rest_url: str = Field(
        default="https://api.binance.com",
        description="Endpoint REST de Binance para exchangeInfo",
    )
    exchange_timeout: float = Field(default=10.0, description="Timeout HTTP (seg)")
    step_sizes: Dict[str, float] = Field(
        default_factory=dict,
        description="Step sizes fijos por símbolo (evita consultar exchangeInfo)",
    )

    # ─── Estrategia ─────────────────────────────────────────────────────
    strategy: str = Field(
        default="crossover_trend",
        description="Evaluador de señales activo (ver strategy_registry)",
    )
    window_capacity: int = Field(
        default=25, description="Capacidad de la ventana de precios por símbolo",
    )
    min_history: int = Field(
        default=22, description="Evaluar solo si la ventana tiene MÁS de N precios",
    )
    short_period: int = Field(default=3, description="Periodo de la media corta")
    long_period: int = Field(default=20, description="Periodo de la media larga")
    take_profit_pct: Optional[float] = Field(
        default=None, description="Banda de take-profit sobre la entrada (0.005 = 0.5%)",
    )
    stop_loss_pct: Optional[float] = Field(
        default=None, description="Banda de stop-loss bajo la entrada (0.005 = 0.5%)",
    )

    # Estrategia crossover_divergence
    divergence_offset: float = Field(
        default=0.015, description="Distancia mínima (precio) a la media corta para operar",
    )
    divergence_min_quote: float = Field(
        default=10.0, description="Balance de cotización mínimo para comprar",
    )
    divergence_min_base: float = Field(
        default=5.0, description="Balance base mínimo para vender",
    )

    # Estrategia regression_dip
    dip_min_drop: float = Field(
        default=0.01, description="Caída mínima de la media corta respecto a 4 precios atrás",
    )

    # Estrategia percent_change (tickers 24h)
    target_gain: float = Field(
        default=1.03, description="Ratio de ganancia para vender (1.03 = +3%)",
    )
    min_negative_count: int = Field(
        default=1, description="Mínimo de símbolos en negativo para comprar",
    )
    buy_percent: float = Field(
        default=-0.005, description="Cambio %% máximo (≤) para ser candidato de compra",
    )
    require_negative: bool = Field(
        default=True, description="Contar solo símbolos con cambio negativo",
    )
    gain_basis: Literal["reference", "bid_over_entry"] = Field(
        default="reference", description="Base para calcular el ratio de ganancia",
    )

    # Estrategia debounced_range (tickers completos)
    debounce_delay: float = Field(
        default=1.0, description="Ventana (seg) de acumulación antes de elegir candidato",
    )
    lower_range_fraction: float = Field(
        default=0.2, description="Fracción inferior del rango diario considerada zona de compra",
    )
    projected_gain: float = Field(
        default=1.02, description="Proyección de precio que debe quedar bajo el máximo",
    )

    # ─── Ledger / Ejecución simulada ────────────────────────────────────
    quote_asset: str = Field(default="USDT", description="Activo de cotización")
    initial_quote_balance: float = Field(
        default=100.0, description="Balance inicial del activo de cotización",
    )
    budget: Optional[float] = Field(
        default=30.0, description="Presupuesto por trade (None = todo el balance)",
    )
    spread_pct: float = Field(
        default=0.002, description="Spread simulado total (0.002 = 0.2%)",
    )

    # ─── Notificaciones ─────────────────────────────────────────────────
    notifier: Literal["log", "telegram"] = Field(
        default="log", description="Canal de entrega de notificaciones",
    )
    telegram_bot_token: Optional[str] = Field(default=None, description="Token del bot")
    telegram_chat_id: Optional[str] = Field(default=None, description="Chat destino")
    telegram_api_url: str = Field(default="https://api.telegram.org")
    bot_label: str = Field(default="SpotPulse", description="Prefijo de los mensajes")
    outcome_history: int = Field(
        default=200, description="Outcomes recientes expuestos por la API",
    )

    # ─── Event Bus ──────────────────────────────────────────────────────
    event_bus_max_queue_size: int = Field(
        default=10_000,
        description="Tamaño máximo de cola del Event Bus para contrapresión",
    )

    # ─── Server ─────────────────────────────────────────────────────────
    host: str = Field(default="0.0.0.0")
    port: int = Field(default=8888)
    debug: bool = Field(default=False)

    model_config = {
        "env_file": ".env",
        "env_file_encoding": "utf-8",
        "case_sensitive": False,
    }

    @field_validator("symbols")
    @classmethod
    def _upper_symbols(cls, value: List[str]) -> List[str]:
        return [s.upper() for s in value]


# Singleton global – se importa donde se necesite
settings = Settings()
