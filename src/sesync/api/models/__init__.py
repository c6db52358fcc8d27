"""Pydantic models for provider API responses."""

from sesync.api.models.responses import (
    GlowmarktAuthResponse,
    GlowmarktReadingsResponse,
    GlowmarktResource,
    GlowmarktTariff,
    GlowmarktTariffListResponse,
    GlowmarktVirtualEntity,
    N3rgyConsumptionResponse,
    N3rgyTariffResponse,
)

__all__ = [
    "GlowmarktAuthResponse",
    "GlowmarktReadingsResponse",
    "GlowmarktResource",
    "GlowmarktTariff",
    "GlowmarktTariffListResponse",
    "GlowmarktVirtualEntity",
    "N3rgyConsumptionResponse",
    "N3rgyTariffResponse",
]
