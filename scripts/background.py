"""Run validation or optimization passes off the calling thread."""

from concurrent.futures import Future, ThreadPoolExecutor
from dataclasses import dataclass
from typing import Any, Callable, Iterator, Optional
import logging
import queue

from models.utils.progress import CancellationToken, ProgressEvent

logger = logging.getLogger(__name__)

PROGRESS = 'progress'
RESULT = 'result'
CANCELLED = 'cancelled'
ERROR = 'error'

# task(progress_callback, cancel_token) -> result
TaskFunction = Callable[[Callable[[ProgressEvent], None], CancellationToken], Any]


@dataclass(frozen=True)
class TaskMessage:
    type: str
    data: Any = None


class BackgroundTask:
    """
    Single worker thread that runs one task and relays its messages.

    Every run ends with exactly one terminal message: `result`, `cancelled`
    (the task returned a result flagged as cancelled) or `error`.
    """

    def __init__(self, task: TaskFunction, name: str = 'task'):
        self.task = task
        self.name = name
        self.cancel_token = CancellationToken()
        self._messages: 'queue.Queue[TaskMessage]' = queue.Queue()
        self._executor: Optional[ThreadPoolExecutor] = None
        self._future: Optional[Future] = None

    def start(self) -> 'BackgroundTask':
        if self._future is not None:
            raise RuntimeError(f"Background task {self.name} already started")
        self._executor = ThreadPoolExecutor(max_workers=1, thread_name_prefix=self.name)
        self._future = self._executor.submit(self._run)
        return self

    def _run(self) -> Any:
        logger.info(f"Background task {self.name} started")
        try:
            result = self.task(self._on_progress, self.cancel_token)
        except Exception as e:
            logger.error(f"Background task {self.name} failed: {str(e)}")
            self._messages.put(TaskMessage(ERROR, e))
            raise
        finally:
            # Releases the worker once this call returns; nothing else is ever submitted
            self._executor.shutdown(wait=False)

        if getattr(result, 'cancelled', False):
            self._messages.put(TaskMessage(CANCELLED, result))
        else:
            self._messages.put(TaskMessage(RESULT, result))
        logger.info(f"Background task {self.name} finished")
        return result

    def _on_progress(self, event: ProgressEvent) -> None:
        self._messages.put(TaskMessage(PROGRESS, event.to_message()))

    def cancel(self) -> None:
        logger.info(f"Cancellation requested for {self.name}")
        self.cancel_token.cancel()

    @property
    def done(self) -> bool:
        return self._future is not None and self._future.done()

    def messages(self, timeout: Optional[float] = None) -> Iterator[TaskMessage]:
        """Yield messages until the terminal one; `timeout` bounds each wait."""
        while True:
            message = self._messages.get(timeout=timeout)
            yield message
            if message.type in (RESULT, CANCELLED, ERROR):
                return

    def result(self, timeout: Optional[float] = None) -> Any:
        """Block for the task's return value; re-raises the task's exception."""
        if self._future is None:
            raise RuntimeError(f"Background task {self.name} was never started")
        try:
            return self._future.result(timeout=timeout)
        finally:
            if self._future.done() and self._executor is not None:
                self._executor.shutdown(wait=False)
