"""Component health reporting.

The reconciler reports through the HealthReporter protocol, which it
receives at construction time. StatusManager is the in-process
implementation: it keeps the last signal per component and logs every
transition.
"""

import threading
from typing import Protocol

from proxyconfig_controller import console
from proxyconfig_controller.models import HealthSignal


class HealthReporter(Protocol):
    """Write-only health side channel, last write wins per component."""

    def set_degraded(self, component: str, reason: str, message: str) -> None: ...

    def set_not_degraded(self, component: str) -> None: ...


class StatusManager:
    """Records the latest health signal of each component."""

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._signals: dict[str, HealthSignal] = {}

    def set_degraded(self, component: str, reason: str, message: str) -> None:
        """Mark ``component`` degraded with a stable reason code and a human message."""
        signal = HealthSignal(component=component, degraded=True, reason=reason, message=message)
        with self._lock:
            previous = self._signals.get(component)
            self._signals[component] = signal
        if previous != signal:
            console.warning(f"{console.highlight(component)} degraded ({reason}): {message}")

    def set_not_degraded(self, component: str) -> None:
        """Clear the degraded condition of ``component``."""
        with self._lock:
            previous = self._signals.get(component)
            self._signals[component] = HealthSignal(component=component, degraded=False)
        if previous is not None and previous.degraded:
            console.success(f"{console.highlight(component)} is no longer degraded")

    def get(self, component: str) -> HealthSignal | None:
        """Return the last signal reported for ``component``, if any."""
        with self._lock:
            return self._signals.get(component)

    @property
    def degraded(self) -> list[HealthSignal]:
        """All currently degraded components."""
        with self._lock:
            return [signal for signal in self._signals.values() if signal.degraded]
