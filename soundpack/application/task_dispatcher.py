"""
Task Dispatcher

Fire-and-forget execution of side effects that must never delay or fail the
request that triggered them (download audit, checkout fulfillment).

With a Celery app the work is published by task name; otherwise, or when
publishing fails, it runs on an in-process thread pool. Both paths have their
own error boundary.
"""

import logging
from concurrent.futures import Future, ThreadPoolExecutor
from typing import Any, Callable, Dict, Optional

logger = logging.getLogger(__name__)


class TaskDispatcher:
    """
    Runs named side effects in the background.

    Args:
        celery_app: Celery instance, or None to always use the local executor
        max_workers: Size of the local thread pool
    """

    def __init__(self, celery_app: Any = None, max_workers: int = 4):
        self.celery_app = celery_app
        self._executor = ThreadPoolExecutor(
            max_workers=max_workers, thread_name_prefix="soundpack-task"
        )

    def dispatch(
        self,
        task_name: str,
        local_fn: Callable[..., Any],
        **kwargs: Any,
    ) -> Optional[Future]:
        """
        Schedule a side effect and return immediately.

        Args:
            task_name: Registered Celery task name
            local_fn: Callable used when Celery is unavailable
            **kwargs: JSON-serializable keyword arguments for the task

        Returns:
            Future for locally executed work, None when published to Celery
        """
        if self.celery_app is not None:
            try:
                self.celery_app.send_task(task_name, kwargs=kwargs)
                logger.debug(f"Published {task_name} to Celery")
                return None
            except Exception as e:
                logger.warning(f"Failed to publish {task_name}, running locally: {e}")

        try:
            return self._executor.submit(self._run_safely, task_name, local_fn, kwargs)
        except RuntimeError as e:
            # Executor already shut down
            logger.error(f"Could not schedule {task_name}: {e}")
            return None

    @staticmethod
    def _run_safely(task_name: str, fn: Callable[..., Any], kwargs: Dict[str, Any]) -> Any:
        try:
            return fn(**kwargs)
        except Exception as e:
            logger.error(f"Background task {task_name} failed: {e}", exc_info=True)
            return None

    def shutdown(self, wait: bool = True) -> None:
        self._executor.shutdown(wait=wait)
