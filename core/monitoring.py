"""Health monitoring for news sources."""

import logging
import time
from typing import Dict, List, Optional

log = logging.getLogger("vigie.monitoring")


class HealthMonitor:
    """Counts consecutive collection failures per source.

    A source that reaches ``alert_threshold`` failures in a row raises a
    single alert and is then skipped for a cooldown that grows with the
    number of failures (one hour per failure, capped). A success resets
    everything for that source.
    """

    def __init__(self, alert_threshold: int = 3, cooldown_max_minutes: float = 24 * 60):
        self.alert_threshold = alert_threshold
        self.cooldown_max_minutes = cooldown_max_minutes
        self._failures: Dict[str, int] = {}
        self._alerted: Dict[str, bool] = {}
        self._last_failure_at: Dict[str, float] = {}
        self._last_error: Dict[str, str] = {}

    def record_success(self, source: str) -> None:
        prev = self._failures.get(source, 0)
        if prev > 0:
            log.info("%s: reprise apres %d echec(s) consecutif(s).", source, prev)
        self._failures[source] = 0
        self._alerted[source] = False
        self._last_failure_at.pop(source, None)
        self._last_error.pop(source, None)

    def record_failure(self, source: str, error: Optional[BaseException] = None) -> bool:
        """Record a failure. Returns True if alert threshold was just crossed."""
        count = self._failures.get(source, 0) + 1
        self._failures[source] = count
        self._last_failure_at[source] = time.monotonic()
        if error is not None:
            self._last_error[source] = f"{type(error).__name__}: {error}"
        log.warning("%s: echec de collecte #%d consecutif.", source, count)

        if count >= self.alert_threshold and not self._alerted.get(source, False):
            self._alerted[source] = True
            log.error(
                "ALERTE: la source %s a echoue %d fois consecutivement (%s)",
                source, count, self._last_error.get(source, "?"),
            )
            return True
        return False

    def is_in_cooldown(self, source: str) -> bool:
        """Check if a source should be skipped this run."""
        failures = self._failures.get(source, 0)
        if failures < self.alert_threshold:
            return False
        last = self._last_failure_at.get(source)
        if last is None:
            return False
        cooldown_sec = min(failures * 3600, self.cooldown_max_minutes * 60)
        elapsed = time.monotonic() - last
        if elapsed < cooldown_sec:
            log.info(
                "%s: en pause (encore %.0f min, apres %d echecs). Ignoree.",
                source, (cooldown_sec - elapsed) / 60, failures,
            )
            return True
        return False

    def get_failures(self, source: str) -> int:
        return self._failures.get(source, 0)

    def last_error(self, source: str) -> Optional[str]:
        return self._last_error.get(source)

    def failing_sources(self) -> List[str]:
        return sorted(s for s, n in self._failures.items() if n > 0)
