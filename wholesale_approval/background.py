"""Run follow-up work off the Slack acknowledgement path."""

from contextvars import copy_context
from concurrent.futures import Future, ThreadPoolExecutor
from typing import Any, Callable

import structlog
from structlog.contextvars import bind_contextvars, get_contextvars

MAX_WORKERS = 4

_executor = ThreadPoolExecutor(max_workers=MAX_WORKERS, thread_name_prefix="wholesale-worker")


def _log_failure(future: Future) -> None:
    exc = future.exception()
    if exc is not None:
        structlog.get_logger().error("background_task_failed", error=str(exc), exc_info=exc)


def run_async(
    func: Callable[..., Any],
    /,
    *args: Any,
    trace_id: str | None = None,
    **kwargs: Any,
) -> Future:
    """Submit *func* to the shared worker pool, carrying the structlog context.

    Slack expects an ``ack()`` within three seconds, so anything that talks to
    Shopify or posts follow-up messages goes through here after acking.
    """

    context = copy_context()

    if trace_id is not None and context.run(lambda: get_contextvars().get("trace_id")) != trace_id:
        context.run(lambda: bind_contextvars(trace_id=trace_id))

    def runner() -> Any:
        return context.run(func, *args, **kwargs)

    future = _executor.submit(runner)
    future.add_done_callback(_log_failure)
    return future
