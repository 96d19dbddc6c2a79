"""Camera-backed scan sessions.

A :class:`ScanSession` owns one acquired input device and forwards every decoded
string to a sink, usually :meth:`CheckInDesk.submit_scan`. The device is
released on every exit path: explicit stop, single-shot completion, a failing
sink, or cancellation of the owning task.
"""

from __future__ import annotations

import asyncio
import inspect
import logging
from contextlib import asynccontextmanager
from typing import Any, AsyncIterator, Awaitable, Callable, Protocol, Union

from ticketgate.metrics import MetricsRegistry, create_metrics_registry
from ticketgate.metrics.definitions import SCAN_RESOURCE_FAILURES, SCAN_SESSIONS_STARTED

logger = logging.getLogger(__name__)

ScanSink = Callable[[str], Union[Awaitable[Any], Any]]

MANUAL_INPUT_HINT = "Failed to start camera. Please check permissions or try manual input."


class ScanResourceUnavailableError(RuntimeError):
    """Raised when the camera cannot be acquired (no device, permission denied)."""

    def __init__(self, message: str = MANUAL_INPUT_HINT) -> None:
        super().__init__(message)


class CameraDevice(Protocol):
    """Input device that yields decoded QR payloads."""

    async def open(self) -> None:
        ...

    def codes(self) -> AsyncIterator[str]:
        ...

    async def close(self) -> None:
        ...


class QueueCodeSource:
    """In-process device fed by a transport that already decoded the QR image."""

    def __init__(self, maxsize: int = 0) -> None:
        self._maxsize = maxsize
        self._queue: asyncio.Queue[str] | None = None

    @property
    def is_open(self) -> bool:
        return self._queue is not None

    async def open(self) -> None:
        self._queue = asyncio.Queue(self._maxsize)

    async def push(self, code: str) -> None:
        if self._queue is None:
            raise ScanResourceUnavailableError("Scanner is not running")
        await self._queue.put(code)

    async def codes(self) -> AsyncIterator[str]:
        while self._queue is not None:
            yield await self._queue.get()

    async def close(self) -> None:
        self._queue = None


class ScanSession:
    """One acquisition of a camera device feeding decoded codes to a sink."""

    def __init__(self, device: CameraDevice, sink: ScanSink, *, single_shot: bool = False) -> None:
        self._device = device
        self._sink = sink
        self._single_shot = single_shot
        self._task: asyncio.Task[None] | None = None
        self._held = False
        self._stopping = False

    @property
    def device(self) -> CameraDevice:
        return self._device

    @property
    def active(self) -> bool:
        return self._held

    async def start(self) -> None:
        if self._task is not None:
            raise RuntimeError("Scan session already started")
        try:
            await self._device.open()
        except Exception as exc:
            # the device may be half open; it must not stay claimed
            await self._abandon()
            if isinstance(exc, ScanResourceUnavailableError):
                raise
            raise ScanResourceUnavailableError() from exc
        self._held = True
        self._task = asyncio.create_task(self._pump())
        logger.debug("Scan session started on %r", self._device)

    async def stop(self) -> None:
        self._stopping = True
        task = self._task
        if task is not None and task is not asyncio.current_task():
            if not task.done():
                task.cancel()
            try:
                await task
            except asyncio.CancelledError:
                pass
            except Exception:
                logger.exception("Scan session ended with an error")
        await self._release()

    async def wait(self) -> None:
        """Block until the session ends on its own (single shot or exhausted device)."""

        if self._task is None:
            return
        try:
            await asyncio.shield(self._task)
        except asyncio.CancelledError:
            if not self._task.cancelled():
                raise
        except Exception:
            logger.exception("Scan session ended with an error")

    async def _pump(self) -> None:
        try:
            async for code in self._device.codes():
                if self._stopping:
                    break
                result = self._sink(code)
                if inspect.isawaitable(result):
                    await result
                if self._single_shot or self._stopping:
                    break
        finally:
            await self._release()

    async def _abandon(self) -> None:
        try:
            await self._device.close()
        except Exception:
            logger.warning("Closing %r after a failed open also failed", self._device, exc_info=True)

    async def _release(self) -> None:
        if not self._held:
            return
        self._held = False
        await self._device.close()
        logger.debug("Scan session released %r", self._device)


class ScanSessionManager:
    """Keeps at most one active scan session for its owner."""

    def __init__(
        self,
        device_factory: Callable[[], CameraDevice],
        *,
        single_shot: bool = True,
        metrics: MetricsRegistry | None = None,
    ) -> None:
        self._device_factory = device_factory
        self._single_shot = single_shot
        self._metrics = metrics or create_metrics_registry()
        self._session: ScanSession | None = None

    @property
    def session(self) -> ScanSession | None:
        return self._session

    async def start(self, sink: ScanSink) -> ScanSession:
        await self.stop()
        session = ScanSession(self._device_factory(), sink, single_shot=self._single_shot)
        try:
            await session.start()
        except ScanResourceUnavailableError:
            self._metrics.counter(SCAN_RESOURCE_FAILURES).inc()
            logger.warning("Camera unavailable, falling back to manual input")
            raise
        self._metrics.counter(SCAN_SESSIONS_STARTED).inc()
        self._session = session
        return session

    async def stop(self, session: ScanSession | None = None) -> None:
        target = session or self._session
        if target is None:
            return
        await target.stop()
        if target is self._session:
            self._session = None

    @asynccontextmanager
    async def scanning(self, sink: ScanSink) -> AsyncIterator[ScanSession]:
        session = await self.start(sink)
        try:
            yield session
        finally:
            await self.stop(session)
