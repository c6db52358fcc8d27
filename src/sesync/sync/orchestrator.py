"""Sync orchestrator: one single-flight pass over every stream."""

import asyncio
from collections.abc import Callable
from dataclasses import dataclass, field
from datetime import date

import structlog

from sesync.config.logging import OperationTimer
from sesync.config.settings import Settings
from sesync.db.engine import Database
from sesync.db.models.sync_profile import SyncProfile
from sesync.db.repositories.sync_profile import SyncProfileRepository
from sesync.providers.base import EnergyDataProvider
from sesync.sync.downloader import HistoryDownloader
from sesync.sync.events import EventEmitter
from sesync.sync.loaders import build_loader
from sesync.sync.state import AppState
from sesync.sync.windows import months_back
from sesync.types import STREAM_ORDER, DataKind, Utility
from sesync.utils.exceptions import SESyncError, SyncError

logger = structlog.get_logger(__name__)

KIND_ORDER: tuple[DataKind, ...] = (DataKind.CONSUMPTION, DataKind.TARIFF)


@dataclass
class StreamResult:
    """Outcome of syncing one stream."""

    name: str
    success: bool
    skipped: bool = False
    checkpoint: date | None = None
    error: str | None = None


@dataclass
class SyncSummary:
    """Outcome of one sync pass."""

    results: list[StreamResult] = field(default_factory=list)
    duration_seconds: float = 0.0

    @property
    def success(self) -> bool:
        return all(r.success for r in self.results)

    @property
    def failed(self) -> list[StreamResult]:
        return [r for r in self.results if not r.success]


class SyncOrchestrator:
    """Coordinates sync passes across the electricity and gas streams.

    At most one pass runs at a time; a call made while a pass is running is
    dropped, not queued.
    """

    def __init__(
        self,
        database: Database,
        settings: Settings,
        state: AppState,
        emitter: EventEmitter,
        today: Callable[[], date] = date.today,
    ) -> None:
        """Initialize the orchestrator.

        Args:
            database: Shared database.
            settings: Application settings.
            state: Process-wide sync flags.
            emitter: Event emitter for progress and status events.
            today: Clock returning the current date.
        """
        self.database = database
        self.settings = settings
        self.state = state
        self.emitter = emitter
        self._today = today
        self.downloader = HistoryDownloader(emitter, today)

    async def check_and_download_new_data(
        self, provider: EnergyDataProvider
    ) -> SyncSummary | None:
        """Run one sync pass unless one is already running.

        Args:
            provider: Provider to download from.

        Returns:
            Summary of the pass, or None if another pass was already running.
        """
        if not self.state.try_start_download():
            logger.info("Sync already in progress, ignoring request")
            return None

        summary = SyncSummary()
        try:
            self.emitter.app_status(True)
            with OperationTimer("sync pass", logger, provider=provider.name) as timer:
                for utility in STREAM_ORDER:
                    summary.results.append(await self._sync_stream(provider, utility))
            summary.duration_seconds = timer.end_time - timer.start_time
        finally:
            self.state.finish_download()
            self.emitter.app_status(False)

        logger.info(
            "Sync pass finished",
            streams=len(summary.results),
            failed=[r.name for r in summary.failed],
            duration=f"{summary.duration_seconds:.1f}s",
        )
        return summary

    def _default_start_date(self) -> date:
        return months_back(self._today(), self.settings.default_start_months_back)

    def _get_or_create_profile(self, name: str, base_unit: str) -> SyncProfile:
        with self.database.session() as session:
            return SyncProfileRepository(session).get_or_create(
                name, base_unit, self._default_start_date()
            )

    def _save_checkpoint(self, profile: SyncProfile, checkpoint: date) -> bool:
        """Advance ``last_synced`` unless the profile was edited during the pass.

        The stored ``is_active`` and ``start_date`` are always kept. If the
        stored ``start_date`` or ``last_synced`` no longer match the values the
        pass started from, the checkpoint is left alone so the next pass
        downloads the newly requested range.

        Raises:
            SyncError: If the profile was removed during the pass.
        """
        with self.database.session() as session:
            repo = SyncProfileRepository(session)
            stored = repo.get_by_id(profile.id)
            if stored is None:
                raise SyncError(f"Sync profile {profile.name} was removed during the pass")
            if (
                stored.start_date != profile.start_date
                or stored.last_synced != profile.last_synced
            ):
                logger.info(
                    "Profile edited during sync, keeping checkpoint",
                    stream=profile.name,
                    start_date=str(stored.start_date),
                    last_synced=str(stored.last_synced),
                )
                return False
            repo.update(stored.id, stored.is_active, stored.start_date, checkpoint)
            return True

    async def _sync_stream(self, provider: EnergyDataProvider, utility: Utility) -> StreamResult:
        name = utility.value
        log = logger.bind(stream=name)

        try:
            profile = await asyncio.to_thread(
                self._get_or_create_profile, name, provider.base_unit(utility)
            )
            if not profile.is_active:
                log.info("Profile is not active, skipping download")
                return StreamResult(name=name, success=True, skipped=True)

            until = (profile.last_synced or profile.start_date).date()
            checkpoints: list[date] = []

            for kind in KIND_ORDER:
                available = (
                    provider.has_consumption(utility)
                    if kind is DataKind.CONSUMPTION
                    else provider.has_tariff_history(utility)
                )
                if not available:
                    log.info("Provider has no data of this kind", kind=kind.value)
                    continue
                loader = build_loader(kind, provider, utility, self.database)
                checkpoints.append(
                    await self.downloader.download(loader, until, f"{name} {kind.value}")
                )

            if not checkpoints:
                return StreamResult(name=name, success=True, skipped=True)

            checkpoint = max(checkpoints)
            saved = await asyncio.to_thread(self._save_checkpoint, profile, checkpoint)
        except SESyncError as e:
            log.error("Stream sync failed", error=str(e), error_type=type(e).__name__)
            return StreamResult(name=name, success=False, error=str(e))

        if not saved:
            return StreamResult(name=name, success=True)

        log.info("Updated sync profile", last_synced=str(checkpoint))
        return StreamResult(name=name, success=True, checkpoint=checkpoint)


_background_tasks: set[asyncio.Task] = set()


async def _run_logged(
    orchestrator: SyncOrchestrator, provider: EnergyDataProvider, close_provider: bool
) -> SyncSummary | None:
    try:
        return await orchestrator.check_and_download_new_data(provider)
    except Exception:
        logger.exception("Background sync failed")
        return None
    finally:
        if close_provider:
            await provider.close()


def spawn_download_task(
    orchestrator: SyncOrchestrator,
    provider: EnergyDataProvider,
    close_provider: bool = False,
) -> asyncio.Task:
    """Schedule a sync pass on the running event loop.

    Errors are logged inside the task and never propagate to the caller.

    Args:
        orchestrator: Orchestrator running the pass.
        provider: Provider to download from.
        close_provider: Close the provider once the pass ends.

    Returns:
        The scheduled task.
    """
    task = asyncio.create_task(_run_logged(orchestrator, provider, close_provider))
    _background_tasks.add(task)
    task.add_done_callback(_background_tasks.discard)
    return task
