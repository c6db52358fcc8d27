"""Process-wide sync flags guarded by a lock."""

import threading


class AppState:
    """Owns the ``downloading`` and ``client_available`` flags.

    ``downloading`` is set by ``try_start_download`` and must be cleared with
    ``finish_download`` on every exit path.
    """

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._downloading = False
        self._client_available = False

    @property
    def is_downloading(self) -> bool:
        with self._lock:
            return self._downloading

    @property
    def is_client_available(self) -> bool:
        with self._lock:
            return self._client_available

    def set_client_available(self, available: bool) -> None:
        with self._lock:
            self._client_available = available

    def try_start_download(self) -> bool:
        """Atomically set ``downloading``; False if it was already set."""
        with self._lock:
            if self._downloading:
                return False
            self._downloading = True
            return True

    def finish_download(self) -> None:
        with self._lock:
            self._downloading = False

