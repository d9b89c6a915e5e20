import asyncio
from collections.abc import Awaitable
from typing import TypeVar

from .errors import StreamCancelledError

T = TypeVar("T")


class CancelToken:
    """Cooperative cancellation signal shared across await points.

    Stream code checks the token between steps and runs each network wait
    through ``guard``, so a stop is seen even while the provider is silent.
    Anything received after the token fired is discarded.
    """

    def __init__(self) -> None:
        self._event = asyncio.Event()

    @property
    def cancelled(self) -> bool:
        return self._event.is_set()

    def cancel(self) -> None:
        """Request cancellation. Idempotent."""
        self._event.set()

    def raise_if_cancelled(self) -> None:
        """Raise StreamCancelledError if cancellation was requested."""
        if self._event.is_set():
            raise StreamCancelledError()

    async def wait(self) -> None:
        """Block until cancellation is requested."""
        await self._event.wait()

    async def guard(self, awaitable: Awaitable[T]) -> T:
        """Await ``awaitable`` unless the token fires first.

        The pending operation is cancelled and awaited when the token wins,
        and a result that lands together with the cancellation is dropped.

        Raises:
            StreamCancelledError: If cancellation was requested before the
                operation finished
        """
        self.raise_if_cancelled()
        work = asyncio.ensure_future(awaitable)
        stop = asyncio.ensure_future(self.wait())
        try:
            await asyncio.wait({work, stop}, return_when=asyncio.FIRST_COMPLETED)
        finally:
            stop.cancel()
            if not work.done():
                work.cancel()
                await asyncio.wait({work})

        if self._event.is_set():
            if not work.cancelled():
                # Mark the discarded outcome as retrieved
                work.exception()
            raise StreamCancelledError()
        return work.result()
