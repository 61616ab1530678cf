"""
Tick clock — integer time markers.

Every time marker in the registry (last_updated, expected/actual delivery,
cycle ids) is a tick count: whole `tick_seconds` intervals since the Unix
epoch. With the default 600s tick, 1008 ticks is one week.
"""

import time


class TickClock:
    """Wall-clock backed tick source."""

    def __init__(self, tick_seconds: int = 600):
        if tick_seconds <= 0:
            raise ValueError("tick_seconds must be positive")
        self.tick_seconds = tick_seconds

    def now(self) -> int:
        return int(time.time()) // self.tick_seconds


class ManualClock:
    """Clock pinned to an explicit tick. Used by tests and replays."""

    def __init__(self, tick: int = 0):
        self.tick = tick

    def now(self) -> int:
        return self.tick

    def advance(self, ticks: int = 1) -> int:
        self.tick += ticks
        return self.tick
