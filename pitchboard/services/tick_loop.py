"""Background tick driver for a match session."""
import logging
import threading
from typing import Callable, Optional

from ..utils import TICK_INTERVAL_SECONDS

logger = logging.getLogger(__name__)


class TickLoop:
    """
    Calls ``session.tick()`` about once per interval on a daemon thread.

    A failing tick is logged and the loop carries on; time is always
    recomputed from wall-clock deltas, so a missed beat loses nothing.
    """

    def __init__(self, session, interval: float = TICK_INTERVAL_SECONDS,
                 on_tick: Optional[Callable] = None):
        self.session = session
        self.interval = interval
        self.on_tick = on_tick
        self._stop = threading.Event()
        self._thread: Optional[threading.Thread] = None

    @property
    def running(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    def start(self) -> None:
        if self.running:
            return
        self._stop.clear()
        self._thread = threading.Thread(target=self._run, name="pitchboard-tick", daemon=True)
        self._thread.start()
        logger.info("Tick loop started (%.1fs)", self.interval)

    def stop(self, timeout: Optional[float] = None) -> None:
        self._stop.set()
        if self._thread is not None:
            self._thread.join(timeout)
            self._thread = None
        logger.info("Tick loop stopped")

    def run_once(self):
        """One tick; errors are logged, never raised."""
        try:
            result = self.session.tick()
        except Exception:
            logger.exception("Tick failed")
            return None
        if self.on_tick is not None:
            try:
                self.on_tick(result)
            except Exception:
                logger.exception("Tick callback failed")
        return result

    def _run(self) -> None:
        while not self._stop.wait(self.interval):
            self.run_once()
