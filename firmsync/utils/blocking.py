"""
Blocking calls from coroutines
Runs synchronous I/O (HTTP, SMTP) on a worker pool owned by FirmSync
"""
import asyncio
from concurrent.futures import ThreadPoolExecutor
from functools import partial
from typing import Any, Callable

# Not the loop's default executor: asyncio.run() joins that one on exit,
# which would make a request wait for calls its workflow already gave up on
_executor = ThreadPoolExecutor(max_workers=16, thread_name_prefix="firmsync-io")


async def run_blocking(func: Callable[..., Any], *args, **kwargs) -> Any:
    """Await ``func(*args, **kwargs)`` without blocking the event loop"""
    loop = asyncio.get_running_loop()
    return await loop.run_in_executor(_executor, partial(func, *args, **kwargs))
