"""Background thread that drives DashboardSession.tick() on a fixed interval."""
import logging
import threading

logger = logging.getLogger(__name__)

DEFAULT_INTERVAL_SECONDS = 10.0


class AutoRefresher:
    def __init__(self, session, interval: float = DEFAULT_INTERVAL_SECONDS):
        self.session = session
        self.interval = interval
        self._stop = threading.Event()
        self._thread: threading.Thread | None = None

    def start(self) -> "AutoRefresher":
        if self._thread is not None and self._thread.is_alive():
            return self
        self._stop.clear()
        self._thread = threading.Thread(target=self._run, name="lead-desk-refresh", daemon=True)
        self._thread.start()
        return self

    def stop(self, timeout: float | None = None) -> None:
        self._stop.set()
        if self._thread is not None:
            self._thread.join(timeout)
            self._thread = None

    @property
    def running(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    def _run(self) -> None:
        while not self._stop.wait(self.interval):
            try:
                self.session.tick()
            except Exception:
                logger.exception("Auto-refresh tick failed")
