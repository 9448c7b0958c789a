"""Domain exceptions."""
from spotpulse.domain.exceptions.domain_errors import (
    ConfigurationError,
    DomainError,
    ExchangeMetadataError,
    MalformedPayloadError,
    NotificationError,
)

__all__ = [
    "DomainError",
    "MalformedPayloadError",
    "ExchangeMetadataError",
    "ConfigurationError",
    "NotificationError",
]
