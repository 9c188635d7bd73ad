# todo_store.py
from typing import Any, Callable, Dict, List
from pydantic import ValidationError
from todo_sync.models.todo import Todo
from todo_sync.utils.logger import logger

# Private todos live under artifacts/{app_id}/users/{user_id}/todos
COLLECTION_ROOT = "artifacts"


def todos_path(app_id: str, user_id: str) -> str:
    return f"{COLLECTION_ROOT}/{app_id}/users/{user_id}/todos"


class FirestoreTodoStore:
    """
    Thin wrapper over a google.cloud.firestore Client.
    Every method blocks on the network; callers run them off the event loop.
    """

    def __init__(self, db):
        self.db = db

    def add(self, path: str, data: Dict[str, Any]) -> str:
        _, doc_ref = self.db.collection(path).add(data)
        return doc_ref.id

    def update(self, path: str, doc_id: str, fields: Dict[str, Any]) -> None:
        self.db.collection(path).document(doc_id).update(fields)

    def delete(self, path: str, doc_id: str) -> None:
        self.db.collection(path).document(doc_id).delete()

    def subscribe(
        self,
        path: str,
        on_snapshot: Callable[[List[Todo]], None],
        on_error: Callable[[Exception], None],
    ):
        """
        Watch every document in the collection (no filter, no ordering).
        Returns the Watch handle; call `unsubscribe()` on it to stop.
        Callbacks run on the Firestore watch thread.
        """
        def callback(docs, changes, read_time):
            todos = []
            for doc in docs:
                try:
                    todos.append(Todo.from_document(doc.id, doc.to_dict()))
                except ValidationError as e:
                    logger.warning(f"⚠️ Skipping malformed todo {doc.id} in {path}: {e}")
            try:
                on_snapshot(todos)
            except Exception as e:
                on_error(e)

        logger.debug(f"🔍 Opening Firestore listener on {path}")
        return self.db.collection(path).on_snapshot(callback)
