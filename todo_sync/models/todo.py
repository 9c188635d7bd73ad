from datetime import datetime, timezone
from typing import Any, Dict, Optional
from pydantic import BaseModel, ConfigDict, Field, field_validator


class Todo(BaseModel):
    """Pydantic model for a todo document as delivered by a snapshot."""
    model_config = ConfigDict(populate_by_name=True)

    id: str  # Store-assigned document ID
    text: str
    completed: bool = False
    created_at: Optional[datetime] = Field(default=None, alias="createdAt")

    @classmethod
    def from_document(cls, doc_id: str, data: Optional[Dict[str, Any]]) -> "Todo":
        # The document ID always wins over a stored "id" field
        fields = {key: value for key, value in (data or {}).items() if key != "id"}
        return cls(id=doc_id, **fields)


class NewTodo(BaseModel):
    """Fields written when a todo is created. Text is trimmed and must not be empty."""
    text: str

    @field_validator("text")
    @classmethod
    def strip_text(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError("Todo text must not be empty.")
        return value

    def to_document(self) -> Dict[str, Any]:
        return {
            "text": self.text,
            "completed": False,  # New todos are not completed by default
            "createdAt": datetime.now(timezone.utc),
        }
