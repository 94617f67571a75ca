import asyncio


class HealthGauge:
    """
    Makeshift health check for readiness probes.

    The gauge is a counter. Unexpected errors outside regular flow control, such as an identity
    store that cannot be reached during a login, push the counter up with `womp`. A background
    task calls `tick` periodically to bring it back down. When a burst of errors pushes the counter
    past the threshold, `is_healthy` returns false and the readiness check fails until the burst
    has drained.
    """

    def __init__(self, value: int = 0, health_threshold: int = 100) -> None:
        self._value = value
        self._health_threshold = health_threshold
        self._lock = asyncio.Lock()

    @property
    def value(self) -> int:
        return self._value

    async def womp(self, d=1) -> int:
        async with self._lock:
            self._value += int(d)
            return self._value

    async def tick(self) -> None:
        async with self._lock:
            if self._value > 0:
                self._value -= 1

    async def is_healthy(self) -> bool:
        async with self._lock:
            return self._value <= self._health_threshold
