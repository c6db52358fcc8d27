"""Backward windowed history download for a single stream."""

from collections.abc import Callable
from datetime import date

import structlog

from sesync.sync.events import EventEmitter
from sesync.sync.loaders import DataLoader
from sesync.sync.windows import iter_windows, progress_percentage

logger = structlog.get_logger(__name__)


class HistoryDownloader:
    """Walks a loader from today back to a checkpoint in provider-sized windows.

    Each non-empty window is persisted before the next one is requested and a
    ``downloadUpdate`` event follows every window. A final 100% event is
    always emitted once the walk completes.
    """

    def __init__(self, emitter: EventEmitter, today: Callable[[], date] = date.today) -> None:
        """Initialize the downloader.

        Args:
            emitter: Event emitter for progress updates.
            today: Clock returning the current date.
        """
        self.emitter = emitter
        self._today = today

    async def download(self, loader: DataLoader, until: date, name: str) -> date:
        """Download everything between ``until`` and today.

        Args:
            loader: Loader for the stream.
            until: Oldest date to fetch (the stream's checkpoint).
            name: Human readable stream label used in progress events.

        Returns:
            Today's date, the stream's new checkpoint.

        Raises:
            LoadError: If any window fails to load; the pass stops there.
            InsertError: If any window fails to persist.
        """
        today = self._today()
        total_days = (today - until).days
        windows = 0
        records_total = 0

        log = logger.bind(stream=name)
        log.info("Downloading history", since=str(until), until=str(today))

        for start, end in iter_windows(today, until, loader.policy):
            log.debug("Fetching window", window_start=str(start), window_end=str(end))
            try:
                records = await loader.load(start, end)
                if records:
                    records_total += await loader.insert(records)
            except Exception as e:
                log.error(
                    "Window failed",
                    window_start=str(start),
                    window_end=str(end),
                    error=str(e),
                )
                raise

            windows += 1
            days_remaining = (start - until).days
            self.emitter.download_update(progress_percentage(days_remaining, total_days), name)

        self.emitter.download_update(100, name)
        log.info("History downloaded", windows=windows, records=records_total)
        return today
