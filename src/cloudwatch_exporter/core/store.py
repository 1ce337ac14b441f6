"""Holder of the active ConfigSnapshot with atomic swap on reload."""

import logging
import threading
from collections.abc import Callable

from cloudwatch_exporter.core.models import ConfigSnapshot

logger = logging.getLogger(__name__)


class ConfigStore:
    """Owns the active configuration snapshot.

    A scrape calls current() once and keeps the returned snapshot for its
    whole duration, so it never sees rules from one configuration mixed with
    the client of another.

    Args:
        loader: Produces a validated snapshot; called by reload().
        snapshot: Initial snapshot. When omitted the loader is called once.
    """

    def __init__(
        self,
        loader: Callable[[], ConfigSnapshot],
        snapshot: ConfigSnapshot | None = None,
    ) -> None:
        self._loader = loader
        self._lock = threading.Lock()
        self._snapshot = snapshot if snapshot is not None else loader()

    def current(self) -> ConfigSnapshot:
        """Return the active snapshot."""
        with self._lock:
            return self._snapshot

    def swap(self, snapshot: ConfigSnapshot) -> ConfigSnapshot:
        """Install a new snapshot and return the one it replaced."""
        with self._lock:
            previous, self._snapshot = self._snapshot, snapshot
        return previous

    def reload(self) -> ConfigSnapshot:
        """Re-run the loader and install its result.

        Raises:
            Whatever the loader raises; the active snapshot is left untouched.
        """
        logger.info("Reloading configuration")
        try:
            snapshot = self._loader()
        except Exception:
            logger.exception("Configuration reload failed, keeping previous")
            raise
        self.swap(snapshot)
        logger.info("Configuration reloaded with %d rules", len(snapshot.rules))
        return snapshot
