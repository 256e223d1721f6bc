"""Run outbound Slack calls after the inbound request has been acknowledged.

Handlers bind a ``trace_id`` with structlog before calling :func:`run_async`; the
worker runs inside a copy of that context so its log lines carry the same id.
Anything a task raises is logged as ``background_task_failed`` before it reaches
the returned future, since no caller waits on it.
"""

from contextvars import copy_context
from concurrent.futures import Future, ThreadPoolExecutor
from typing import Any, Callable

import structlog

MAX_WORKERS = 4

_executor = ThreadPoolExecutor(max_workers=MAX_WORKERS, thread_name_prefix="approval-bot")


def _task_name(func: Callable[..., Any]) -> str:
    return getattr(func, "__qualname__", None) or repr(func)


def run_async(func: Callable[..., Any], /, *args: Any, **kwargs: Any) -> Future:
    """Submit *func* to the shared pool within the caller's structlog context."""

    context = copy_context()

    def runner() -> Any:
        try:
            return func(*args, **kwargs)
        except Exception:
            structlog.get_logger().exception("background_task_failed", task=_task_name(func))
            raise

    return _executor.submit(context.run, runner)
