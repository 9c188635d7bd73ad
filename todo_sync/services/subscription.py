# subscription.py
import asyncio
from typing import List, Optional
from todo_sync.models.todo import Todo
from todo_sync.services.session import SessionContext
from todo_sync.utils.logger import logger


class SubscriptionManager:
    """
    Keeps exactly one live listener on the session's todo collection
    and re-renders the list view on every snapshot.
    """

    def __init__(self, session: SessionContext, store, view):
        self.session = session
        self.store = store
        self.view = view
        self.path: Optional[str] = None
        self._handle = None
        self._loop: Optional[asyncio.AbstractEventLoop] = None

    @property
    def active(self) -> bool:
        return self._handle is not None

    def start(self) -> bool:
        """Open the listener for the current identity, replacing any previous one."""
        if self.store is None or not self.session.ready:
            logger.info("Firestore or user ID not ready yet for real-time listener.")
            return False

        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            logger.warning("No running event loop; real-time listener not started.")
            return False

        self.stop()
        self._loop = loop

        path = self.session.collection_path
        self.path = path
        self._handle = self.store.subscribe(
            path,
            lambda todos: self._dispatch(self._deliver, path, todos),
            lambda error: self._dispatch(self._on_error, path, error),
        )
        self.session.mark_subscribed()
        logger.info(f"📡 Listening for todos at {path}")
        return True

    def stop(self) -> None:
        if self._handle is None:
            return
        try:
            self._handle.unsubscribe()
        except Exception as e:
            logger.warning(f"Error closing listener on {self.path}: {e}")
        logger.info(f"Stopped listening at {self.path}")
        self._handle = None
        self.path = None

    def _dispatch(self, callback, *args) -> None:
        # Snapshots arrive on the store's watch thread; render on the event loop.
        loop = self._loop
        try:
            running_loop = asyncio.get_running_loop()
        except RuntimeError:
            running_loop = None

        if loop is None:
            logger.debug(f"Listener stopped; dropping update for {args[0]}")
        elif running_loop is loop:
            callback(*args)
        elif loop.is_running():
            loop.call_soon_threadsafe(callback, *args)
        else:
            logger.debug(f"Event loop closed; dropping update for {args[0]}")

    def _deliver(self, path: str, todos: List[Todo]) -> None:
        if path != self.path:
            logger.debug(f"Ignoring snapshot from stale listener at {path}")
            return
        if not todos:
            logger.info("No todos found for this user.")
        self.view.render(todos)

    def _on_error(self, path: str, error: Exception) -> None:
        logger.error(f"❌ Error fetching todos in real-time from {path}: {error}")
