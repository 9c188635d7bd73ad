# -*- coding: utf-8 -*-
import asyncio
import json
from html import escape
from typing import Callable, Dict, List, Optional, Set

from todo_sync.models.todo import Todo
from todo_sync.utils.logger import logger

COMPLETED_CLASS = "completed"


class TodoElement:
    """One rendered list item, wired to the mutation gateway."""

    def __init__(self, todo: Todo, gateway, on_change: Optional[Callable[[], None]] = None):
        self.id = todo.id
        self.gateway = gateway
        self.on_change = on_change
        self.text = todo.text
        self.completed = todo.completed

    def update(self, todo: Todo) -> None:
        self.text = todo.text
        self.completed = todo.completed

    async def click(self) -> bool:
        """Primary interaction: flip the marker now, persist it, revert if the write fails."""
        self.completed = not self.completed
        requested = self.completed
        saved = await self.gateway.update_status(self.id, requested)
        # A later snapshot or click may already have replaced the value
        if not saved and self.completed == requested:
            self.completed = not requested
            if self.on_change is not None:
                self.on_change()
        return saved

    async def context_menu(self) -> bool:
        """Secondary interaction: request deletion. The item stays until the next snapshot drops it."""
        return await self.gateway.delete(self.id)

    def to_html(self) -> str:
        class_attr = f' class="{COMPLETED_CLASS}"' if self.completed else ""
        return f'<li data-id="{escape(self.id)}"{class_attr}>{escape(self.text)}</li>'

    def to_dict(self) -> Dict[str, object]:
        return {"id": self.id, "text": self.text, "completed": self.completed}


class TodoForm:
    """The add-todo form: a single text input."""

    def __init__(self, gateway):
        self.gateway = gateway
        self.value = ""

    async def submit(self) -> Optional[str]:
        text = self.value.strip()
        if not text:
            return None
        doc_id = await self.gateway.create(text)
        if doc_id is not None:
            self.value = ""  # Clear the input only after a successful add
        return doc_id


class TodoListView:
    """
    The todo list container plus the status display.
    Watchers (SSE streams) receive {"status", "html"} after every change.
    """

    def __init__(self, gateway):
        self.gateway = gateway
        self.elements: List[TodoElement] = []
        self.status = ""
        self._watchers: Set[asyncio.Queue] = set()

    def find(self, todo_id: str) -> Optional[TodoElement]:
        for element in self.elements:
            if element.id == todo_id:
                return element
        return None

    def render(self, todos: List[Todo]) -> None:
        """
        Replace the list with the snapshot's records, in snapshot order.
        Elements whose ID is still present are reused and updated in place.
        """
        existing = {element.id: element for element in self.elements}
        rendered = []
        for todo in todos:
            element = existing.pop(todo.id, None)
            if element is None:
                element = TodoElement(todo, self.gateway, on_change=self._notify)
            else:
                element.update(todo)
            rendered.append(element)
        self.elements = rendered
        logger.debug(f"Rendered {len(rendered)} todos ({len(existing)} removed)")
        self._notify()

    def clear(self) -> None:
        self.elements = []
        self._notify()

    def set_status(self, text: str) -> None:
        self.status = text
        self._notify()

    # --- Watchers ---

    def watch(self) -> asyncio.Queue:
        queue: asyncio.Queue = asyncio.Queue()
        self._watchers.add(queue)
        return queue

    def unwatch(self, queue: asyncio.Queue) -> None:
        self._watchers.discard(queue)

    def payload(self) -> Dict[str, str]:
        return {"status": self.status, "html": self.render_list()}

    def _notify(self) -> None:
        if not self._watchers:
            return
        payload = self.payload()
        for queue in self._watchers:
            queue.put_nowait(payload)

    # --- HTML ---

    def render_list(self) -> str:
        return "".join(element.to_html() for element in self.elements)

    def render_page(self, title: str = "Todos") -> str:
        return PAGE_TEMPLATE.format(
            title=escape(title),
            status=escape(self.status),
            items=self.render_list(),
        )


PAGE_TEMPLATE = """<!DOCTYPE html>
<html lang="en">
<head>
  <meta charset="UTF-8">
  <title>{title}</title>
  <style>
    li {{ cursor: pointer; }}
    li.completed {{ color: #b6b6b6; text-decoration: line-through; }}
  </style>
</head>
<body>
  <h1>{title}</h1>
  <p id="userIdDisplay">{status}</p>
  <form id="form" autocomplete="off">
    <input type="text" id="input" name="text" placeholder="Enter your todo">
  </form>
  <ul id="todos">{items}</ul>
  <small>Left click to toggle completed. Right click to delete todo.</small>
  <script>
    const form = document.getElementById('form');
    const input = document.getElementById('input');
    const todosUL = document.getElementById('todos');
    const userIdDisplay = document.getElementById('userIdDisplay');

    form.addEventListener('submit', async (e) => {{
      e.preventDefault();
      const response = await fetch('/todos', {{ method: 'POST', body: new FormData(form) }});
      const result = await response.json();
      input.value = result.input;
    }});

    todosUL.addEventListener('click', async (e) => {{
      const li = e.target.closest('li');
      if (!li) return;
      const id = li.dataset.id;
      li.classList.toggle('completed');
      const response = await fetch(`/todos/${{id}}/toggle`, {{ method: 'POST' }});
      if (!response.ok) return;
      const result = await response.json();
      const current = todosUL.querySelector(`li[data-id="${{CSS.escape(id)}}"]`);
      if (current) current.classList.toggle('completed', result.completed);
    }});

    todosUL.addEventListener('contextmenu', (e) => {{
      const li = e.target.closest('li');
      if (!li) return;
      e.preventDefault();
      fetch(`/todos/${{li.dataset.id}}/delete`, {{ method: 'POST' }});
    }});

    const stream = new EventSource('/stream');
    stream.onmessage = (event) => {{
      const data = JSON.parse(event.data);
      userIdDisplay.innerText = data.status;
      todosUL.innerHTML = data.html;
    }};
  </script>
</body>
</html>
"""


def format_event(payload: Dict[str, str]) -> str:
    return f"data: {json.dumps(payload)}\n\n"
