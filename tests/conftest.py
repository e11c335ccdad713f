import pytest


class ManualTimer:
    def __init__(self, due_ms, callback, args):
        self.due_ms = due_ms
        self.callback = callback
        self.args = args
        self.cancelled = False
        self.fired = False

    def cancel(self):
        self.cancelled = True


class ManualScheduler:
    """Deterministic stand-in for an event loop: time only moves on advance()."""

    def __init__(self, start_ms=0.0, honour_cancel=True):
        self.now_ms = start_ms
        self.honour_cancel = honour_cancel
        self.timers = []

    def clock(self):
        return self.now_ms

    def call_later(self, delay, callback, *args):
        timer = ManualTimer(self.now_ms + delay * 1000.0, callback, args)
        self.timers.append(timer)
        return timer

    def _due(self, until_ms):
        live = [
            t for t in self.timers
            if not t.fired and t.due_ms <= until_ms and not (t.cancelled and self.honour_cancel)
        ]
        return min(live, key=lambda t: t.due_ms) if live else None

    def advance(self, ms):
        target = self.now_ms + ms
        while True:
            timer = self._due(target)
            if timer is None:
                break
            self.now_ms = max(self.now_ms, timer.due_ms)
            timer.fired = True
            timer.callback(*timer.args)
        self.now_ms = target

    @property
    def pending(self):
        return [t for t in self.timers if not t.fired and not t.cancelled]


@pytest.fixture
def scheduler():
    return ManualScheduler(start_ms=1_000_000.0)
