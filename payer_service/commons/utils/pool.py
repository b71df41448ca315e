import asyncio
import contextvars
from concurrent.futures import ThreadPoolExecutor
from typing import Optional


class ThreadPoolHelper:
    """
    Runs blocking calls (stripe-python requests) off the event loop.
    """

    prefix = ""
    executor: ThreadPoolExecutor

    def __init__(self, max_workers: Optional[int] = None, prefix: str = ""):
        self.prefix = prefix
        self.executor = ThreadPoolExecutor(max_workers, self.prefix)

    def shutdown(self, wait=True):
        self.executor.shutdown(wait=wait)

    async def submit(self, fn, *args, **kwargs):
        """
        Submit a function for execution in the ThreadPoolExecutor, and `await` the result

        Args:
            fn: the function to be executed

        Note that :class:`concurrent.futures.Futures` are not directly awaitable, they
        need to be wrapped in an :class:`asyncio.Future`

        This is the same code as :class:`asyncio.BaseEventLoop.run_in_executor` except that
        we can support `kwargs` more easily.
        """
        # contextvars of the caller are preserved in the executor thread
        context: contextvars.Context = contextvars.copy_context()

        return await asyncio.wrap_future(
            self.executor.submit(context.run, fn, *args, **kwargs)
        )

