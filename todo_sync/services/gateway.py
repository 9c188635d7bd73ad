# gateway.py
#
# Create / update / delete requests against the session's todo collection.
# Failures are logged and reported through the return value; nothing is raised.

import asyncio
from typing import Optional
from pydantic import ValidationError
from todo_sync.models.todo import NewTodo
from todo_sync.services.session import SessionContext
from todo_sync.utils.logger import logger


class MutationGateway:

    def __init__(self, session: SessionContext, store):
        self.session = session
        self.store = store

    def _ensure_ready(self, operation: str) -> bool:
        if self.store is None or not self.session.ready:
            logger.info(f"Database or user ID not ready for {operation} operation.")
            return False
        return True

    async def create(self, text: str) -> Optional[str]:
        """Add a todo with the trimmed text. Returns the new document ID, or None."""
        try:
            new_todo = NewTodo(text=text or "")
        except ValidationError:
            logger.debug("Ignoring empty todo text.")
            return None
        if not self._ensure_ready("add"):
            return None

        path = self.session.collection_path
        try:
            doc_id = await asyncio.to_thread(self.store.add, path, new_todo.to_document())
        except Exception as e:
            logger.error(f"❌ Error adding document to Firestore: {e}")
            return None

        logger.info(f"✅ Added todo {doc_id} to {path}")
        return doc_id

    async def update_status(self, todo_id: str, completed: bool) -> bool:
        if not self._ensure_ready("update"):
            return False

        path = self.session.collection_path
        try:
            await asyncio.to_thread(self.store.update, path, todo_id, {"completed": completed})
        except Exception as e:
            logger.error(f"❌ Error updating document in Firestore: {e}")
            return False

        logger.info(f"✅ Todo {todo_id} marked completed={completed}")
        return True

    async def delete(self, todo_id: str) -> bool:
        if not self._ensure_ready("delete"):
            return False

        path = self.session.collection_path
        try:
            await asyncio.to_thread(self.store.delete, path, todo_id)
        except Exception as e:
            logger.error(f"❌ Error deleting document from Firestore: {e}")
            return False

        logger.info(f"✅ Deleted todo {todo_id}")
        return True
