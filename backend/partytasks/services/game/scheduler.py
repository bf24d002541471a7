import logging
from typing import Callable

logger = logging.getLogger(__name__)


class Scheduler:
    """Periodic loops and one-shot delays on Socket.IO background tasks.

    With inline=True (tests) loops are never started and delayed calls run
    immediately, so control flow stays deterministic.
    """

    def __init__(self, socketio, inline: bool = False):
        self.socketio = socketio
        self.inline = inline
        self._started = set()

    def every(self, interval: float, fn: Callable[[], None], name: str = None) -> None:
        name = name or getattr(fn, '__name__', 'task')
        if self.inline or interval <= 0 or name in self._started:
            return
        self._started.add(name)

        def _loop():
            logger.info(f"[timer-set] loop={name} interval={interval}s")
            while True:
                self.socketio.sleep(interval)
                try:
                    fn()
                except Exception:
                    # One bad tick must not kill the loop
                    logger.exception(f"[timer-fire] loop={name} failed")

        self.socketio.start_background_task(_loop)

    def call_later(self, delay: float, fn: Callable, *args) -> None:
        if self.inline:
            fn(*args)
            return

        def _worker():
            self.socketio.sleep(delay)
            fn(*args)

        self.socketio.start_background_task(_worker)
