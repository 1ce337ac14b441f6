"""SIGHUP hook that reloads the exporter configuration."""

import logging
import signal
from types import FrameType

from cloudwatch_exporter.core.store import ConfigStore

logger = logging.getLogger(__name__)


def install_reload_signal_handler(
    store: ConfigStore, signum: int = signal.SIGHUP
) -> None:
    """Reload the configuration whenever the process receives signum.

    Must be called from the main thread. Reload failures are logged and the
    previous configuration stays active.
    """

    def _handle(received: int, frame: FrameType | None) -> None:
        try:
            store.reload()
        except Exception:
            logger.exception("Reload triggered by signal %d failed", received)

    signal.signal(signum, _handle)
