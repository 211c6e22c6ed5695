# aq_listener/service.py
"""Background thread that drives the ingestion loop for the app's lifetime."""
from __future__ import annotations

import logging
import threading
from typing import Optional

from .listener import IngestionLoop

logger = logging.getLogger(__name__)


class IngestService:
    def __init__(self, loop: IngestionLoop):
        self.loop = loop
        self.last_error: Optional[str] = None
        self._stop = threading.Event()
        self._thread: Optional[threading.Thread] = None

    @property
    def is_running(self) -> bool:
        return bool(self._thread and self._thread.is_alive())

    def start(self) -> None:
        """Start the listener thread if it is not already running."""
        if self.is_running:
            return
        self._stop.clear()
        self.last_error = None
        self._thread = threading.Thread(target=self._run, name="IngestService", daemon=True)
        self._thread.start()

    def stop(self, timeout: float = 2.0) -> None:
        """Ask the loop to finish its current datagram, then close the source."""
        self._stop.set()
        if self._thread:
            self._thread.join(timeout=timeout)
            if self._thread.is_alive():
                # still mid-datagram; keep the thread and leave the source open
                logger.warning("IngestService did not stop within %.1fs", timeout)
                return
        self._thread = None
        close = getattr(self.loop.source, "close", None)
        if callable(close):
            close()

    def _run(self) -> None:
        try:
            self.loop.run(self._stop)
        except Exception as e:
            self.last_error = str(e)
            logger.exception("IngestService stopped")
