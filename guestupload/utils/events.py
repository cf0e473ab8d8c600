from functools import partial
from typing import Callable, Dict, List, Set
import asyncio
import inspect
import logging

logger = logging.getLogger(__name__)


class EventEmitter:
    """Simple event emitter for upload events."""

    def __init__(self):
        self._listeners: Dict[str, List[Callable]] = {}
        self._pending: Set[asyncio.Task] = set()

    def on(self, event_name: str, callback: Callable):
        """Subscribe to an event."""
        if event_name not in self._listeners:
            self._listeners[event_name] = []
        if callback not in self._listeners[event_name]:
            self._listeners[event_name].append(callback)

    def off(self, event_name: str, callback: Callable):
        """Unsubscribe from an event."""
        if event_name in self._listeners:
            if callback in self._listeners[event_name]:
                self._listeners[event_name].remove(callback)

    def has_listeners(self, event_name: str) -> bool:
        return bool(self._listeners.get(event_name))

    def _listener_done(self, event_name: str, task: asyncio.Task) -> None:
        self._pending.discard(task)
        if task.cancelled():
            return
        e = task.exception()
        if e is not None:
            logger.error(f"Error in event listener for {event_name}: {e}")

    def emit_sync(self, event_name: str, *args, **kwargs):
        """Emit to plain-function listeners only; coroutine listeners are scheduled."""
        for callback in self._listeners.get(event_name, [])[:]:
            try:
                if inspect.iscoroutinefunction(callback):
                    task = asyncio.get_running_loop().create_task(callback(*args, **kwargs))
                    self._pending.add(task)
                    task.add_done_callback(partial(self._listener_done, event_name))
                else:
                    callback(*args, **kwargs)
            except Exception as e:
                logger.error(f"Error in event listener for {event_name}: {e}")

    async def drain(self):
        """Wait for coroutine listeners scheduled by emit_sync."""
        while self._pending:
            await asyncio.gather(*list(self._pending), return_exceptions=True)

    async def emit(self, event_name: str, *args, **kwargs):
        """Emit an event to all listeners, in subscription order."""
        for callback in self._listeners.get(event_name, [])[:]:  # Copy list to avoid modification during iteration
            try:
                if inspect.iscoroutinefunction(callback):
                    await callback(*args, **kwargs)
                else:
                    callback(*args, **kwargs)
            except Exception as e:
                logger.error(f"Error in event listener for {event_name}: {e}")
