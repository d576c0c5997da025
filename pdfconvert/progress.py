"""Progress reporting for one document's conversion."""

from __future__ import annotations

import logging
from typing import Callable, Optional

from .models import ConversionProgress

log = logging.getLogger(__name__)

ProgressSink = Callable[[ConversionProgress], None]


class ProgressReporter:
    """Forwards progress events to a caller-supplied sink.

    Percent values are clamped to ``[0, 100]`` and never go below the last
    value emitted, so a subscriber always sees a non-decreasing stream.
    """

    def __init__(self, sink: Optional[ProgressSink] = None, label: str = "") -> None:
        self._sink = sink
        self._label = label
        self._last = 0

    @property
    def last_percent(self) -> int:
        return self._last

    def emit(self, status: str, percent: float) -> ConversionProgress:
        value = max(self._last, min(100, max(0, int(round(percent)))))
        self._last = value
        event = ConversionProgress(status=status, percent=value)
        log.debug("%s%3d%% %s", f"[{self._label}] " if self._label else "", value, status)
        if self._sink is not None:
            self._sink(event)
        return event
