"""Progress and status events emitted to the UI layer."""

from collections.abc import Callable
from typing import Any, Protocol

import structlog
from pydantic import BaseModel, ConfigDict, Field

logger = structlog.get_logger(__name__)

DOWNLOAD_UPDATE = "downloadUpdate"
APP_STATUS_UPDATE = "appStatusUpdate"
SETTINGS_UPDATED = "settingsUpdated"


class DownloadUpdateEvent(BaseModel):
    """Per-window progress of one stream's download."""

    percentage: int = Field(ge=0, le=100)
    name: str


class AppStatusUpdateEvent(BaseModel):
    """Start or end of a sync pass."""

    model_config = ConfigDict(populate_by_name=True)

    is_downloading: bool = Field(alias="isDownloading")


class SettingsUpdatedEvent(BaseModel):
    """Credentials or provider settings changed; listeners should rebind."""


class EventSink(Protocol):
    """Receiver of named events with JSON-compatible payloads."""

    def emit(self, event: str, payload: dict[str, Any]) -> None: ...


class LoggingEventSink:
    """Sink that writes every event to the log."""

    def emit(self, event: str, payload: dict[str, Any]) -> None:
        logger.info("Event emitted", event_name=event, **payload)


class CallbackEventSink:
    """Sink that hands every event to a callable."""

    def __init__(self, callback: Callable[[str, dict[str, Any]], None]) -> None:
        self._callback = callback

    def emit(self, event: str, payload: dict[str, Any]) -> None:
        self._callback(event, payload)


class EventEmitter:
    """Fire-and-forget event delivery.

    A failing sink is logged and never interrupts the caller.
    """

    def __init__(self, sink: EventSink | None = None) -> None:
        self.sink: EventSink = sink or LoggingEventSink()

    def emit(self, event: str, payload: BaseModel) -> None:
        data = payload.model_dump(by_alias=True)
        try:
            self.sink.emit(event, data)
        except Exception as e:
            logger.warning("Failed to deliver event", event_name=event, error=str(e))

    def download_update(self, percentage: int, name: str) -> None:
        self.emit(DOWNLOAD_UPDATE, DownloadUpdateEvent(percentage=percentage, name=name))

    def app_status(self, is_downloading: bool) -> None:
        self.emit(APP_STATUS_UPDATE, AppStatusUpdateEvent(is_downloading=is_downloading))

    def settings_updated(self) -> None:
        self.emit(SETTINGS_UPDATED, SettingsUpdatedEvent())
