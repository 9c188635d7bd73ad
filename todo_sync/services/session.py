# session.py
from enum import Enum
from typing import Optional
from todo_sync.services.todo_store import todos_path

LOADING = "loading..."


class SessionState(str, Enum):
    UNREADY = "unready"
    READY = "ready"
    SUBSCRIBED = "subscribed"


class SessionContext:
    """
    Identity and collection scope for one running client.
    Created at bootstrap, opened when an identity is known, invalidated on sign-out.
    """

    def __init__(self, app_id: str):
        self.app_id = app_id
        self.user_id: Optional[str] = None
        self.anonymous = False
        self.state = SessionState.UNREADY

    @property
    def ready(self) -> bool:
        return self.state != SessionState.UNREADY and self.user_id is not None

    @property
    def display_id(self) -> str:
        return self.user_id or LOADING

    @property
    def collection_path(self) -> str:
        if not self.ready:
            raise RuntimeError("Session identity is not ready.")
        return todos_path(self.app_id, self.user_id)

    def open(self, user_id: str, anonymous: bool = False) -> None:
        self.user_id = user_id
        self.anonymous = anonymous
        self.state = SessionState.READY

    def mark_subscribed(self) -> None:
        if self.ready:
            self.state = SessionState.SUBSCRIBED

    def invalidate(self) -> None:
        self.user_id = None
        self.anonymous = False
        self.state = SessionState.UNREADY
