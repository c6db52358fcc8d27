"""Pydantic models for n3rgy and Glowmarkt API responses."""

from datetime import datetime
from typing import Annotated, Any

from pydantic import BaseModel, BeforeValidator, ConfigDict, Field

_TIMESTAMP_FORMATS = (
    "%Y-%m-%d %H:%M:%S",
    "%Y-%m-%d %H:%M",
    "%Y-%m-%dT%H:%M:%S",
    "%Y-%m-%dT%H:%M",
    "%Y%m%d%H%M",
    "%Y-%m-%d",
)


def parse_timestamp(value: Any) -> Any:
    """Parse the timestamp layouts used by both APIs into naive datetimes.

    Values that are not strings are returned unchanged for pydantic to handle.
    """
    if not isinstance(value, str):
        return value
    text = value.strip().replace("Z", "")
    for fmt in _TIMESTAMP_FORMATS:
        try:
            return datetime.strptime(text, fmt)
        except ValueError:
            continue
    return datetime.fromisoformat(text)


Timestamp = Annotated[datetime, BeforeValidator(parse_timestamp)]


# n3rgy consumer API


class N3rgyReading(BaseModel):
    """Single consumption reading."""

    timestamp: Timestamp
    value: float


class N3rgyConsumptionResponse(BaseModel):
    """Response from /{utility}/consumption/1."""

    resource: str | None = None
    unit: str | None = None
    values: list[N3rgyReading] = Field(default_factory=list)


class N3rgyStandingCharge(BaseModel):
    """Standing charge entry."""

    startDate: Timestamp
    value: float


class N3rgyPrice(BaseModel):
    """Unit price entry."""

    timestamp: Timestamp
    value: float


class N3rgyTariff(BaseModel):
    """Tariff block with standing charges and prices."""

    standingCharges: list[N3rgyStandingCharge] = Field(default_factory=list)
    prices: list[N3rgyPrice] = Field(default_factory=list)


class N3rgyTariffResponse(BaseModel):
    """Response from /{utility}/tariff/1."""

    resource: str | None = None
    values: list[N3rgyTariff] = Field(default_factory=list)


# Glowmarkt API


class GlowmarktAuthResponse(BaseModel):
    """Response from POST /auth."""

    valid: bool = False
    token: str | None = None
    exp: int | None = None
    accountId: str | None = None


class GlowmarktResource(BaseModel):
    """A metered resource (consumption or cost series)."""

    model_config = ConfigDict(extra="ignore")

    resourceId: str
    name: str
    classifier: str | None = None
    baseUnit: str | None = None


class GlowmarktVirtualEntityResource(BaseModel):
    """Resource reference inside a virtual entity."""

    resourceId: str
    name: str | None = None


class GlowmarktVirtualEntity(BaseModel):
    """Grouping of resources, e.g. the DCC sourced smart meter data."""

    veId: str
    name: str
    resources: list[GlowmarktVirtualEntityResource] = Field(default_factory=list)


class GlowmarktReadingsResponse(BaseModel):
    """Response from /resource/{id}/readings; data rows are [epoch_seconds, value]."""

    resourceId: str | None = None
    units: str | None = None
    data: list[tuple[int, float]] = Field(default_factory=list)


class GlowmarktTariff(BaseModel):
    """Versioned tariff plan from /resource/{id}/tariff-list."""

    model_config = ConfigDict(populate_by_name=True)

    id: str
    plan: Any = None
    effective_date: Timestamp | None = Field(default=None, alias="effectiveDate")
    from_: Timestamp | None = Field(default=None, alias="from")
    display_name: str | None = Field(default=None, alias="displayName")


class GlowmarktTariffListResponse(BaseModel):
    """Response from /resource/{id}/tariff-list."""

    data: list[GlowmarktTariff] = Field(default_factory=list)
