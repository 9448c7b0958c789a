"""SpotPulse – motor de posición guiado por señales sobre streams de Binance."""

__version__ = "0.4.0"
