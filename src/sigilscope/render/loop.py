"""
Frame loop with an injected scheduler.

The loop owns no timer. A scheduler supplies ``request(callback) -> handle``
and ``cancel(handle)`` (a display-refresh hook, an event loop, or the
``ManualScheduler`` below for tests and offline rendering).
"""

from typing import Any, Callable, Iterator, List, Optional, Protocol

TIME_STEP = 0.01


class Scheduler(Protocol):
    def request(self, callback: Callable[[], None]) -> Any: ...

    def cancel(self, handle: Any) -> None: ...


class AnimationLoop:
    """
    Calls ``draw_fn(t)`` once per scheduled tick, advancing ``t`` by 0.01.

    ``start()`` draws the first frame immediately and arms the next tick;
    ``cancel()`` releases the pending handle at once and is safe to call
    more than once.
    """

    def __init__(
        self,
        draw_fn: Callable[[float], Any],
        scheduler: Optional[Scheduler] = None,
        time_step: float = TIME_STEP,
    ):
        self.draw_fn = draw_fn
        self.scheduler = scheduler
        self.time_step = time_step
        self.time = 0.0
        self.handle: Any = None
        self.running = False

    def tick(self) -> Any:
        """Draw one frame at the current time and advance the clock."""
        result = self.draw_fn(self.time)
        self.time += self.time_step
        return result

    def _on_frame(self) -> None:
        self.handle = None
        if not self.running:
            return
        self.tick()
        self._arm()

    def _arm(self) -> None:
        if self.scheduler is not None and self.running:
            self.handle = self.scheduler.request(self._on_frame)

    def start(self) -> "AnimationLoop":
        if self.scheduler is None:
            raise RuntimeError("AnimationLoop.start() needs a scheduler; use frames() offline")
        if self.running:
            return self
        self.running = True
        self.tick()
        self._arm()
        return self

    def cancel(self) -> None:
        self.running = False
        if self.handle is not None:
            handle, self.handle = self.handle, None
            self.scheduler.cancel(handle)

    def frames(self, n: int) -> Iterator[Any]:
        """Drive ``n`` ticks synchronously, yielding each draw result."""
        for _ in range(n):
            yield self.tick()


class ManualScheduler:
    """Scheduler that only fires when ``step()`` is called."""

    def __init__(self):
        self._next_handle = 1
        self.pending = {}
        self.cancelled: List[int] = []

    def request(self, callback: Callable[[], None]) -> int:
        handle = self._next_handle
        self._next_handle += 1
        self.pending[handle] = callback
        return handle

    def cancel(self, handle: int) -> None:
        if self.pending.pop(handle, None) is not None:
            self.cancelled.append(handle)

    def step(self) -> int:
        """Run every pending callback once. Returns how many ran."""
        ready, self.pending = self.pending, {}
        for callback in ready.values():
            callback()
        return len(ready)
