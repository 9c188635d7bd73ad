# -*- coding: utf-8 -*-
import asyncio

from fastapi import APIRouter, Depends, Form, HTTPException, Request
from fastapi.responses import HTMLResponse, StreamingResponse

from todo_sync.client import TodoClient
from todo_sync.ui.renderer import TodoListView, format_event
from todo_sync.utils.logger import logger

router = APIRouter()

KEEPALIVE_SECONDS = 15.0


def get_client(request: Request) -> TodoClient:
    """FastAPI dependency returning the client started at application startup."""
    client = getattr(request.app.state, "client", None)
    if client is None:
        raise HTTPException(status_code=503, detail="Todo client is not running.")
    return client


def get_rendered_element(todo_id: str, client: TodoClient):
    element = client.view.find(todo_id)
    if element is None:
        logger.warning(f"❌ Todo not rendered: {todo_id}")
        raise HTTPException(status_code=404, detail="Todo not found")
    return element


# --- SSE Event Generator ---
async def event_generator(view: TodoListView, keepalive: float = KEEPALIVE_SECONDS):
    queue = view.watch()
    try:
        yield format_event(view.payload())
        while True:
            try:
                payload = await asyncio.wait_for(queue.get(), timeout=keepalive)
            except asyncio.TimeoutError:
                yield ": keep-alive\n\n"
                continue
            yield format_event(payload)
    except asyncio.CancelledError:
        logger.info("SSE - Client disconnected. Cleaning up.")
        raise
    finally:
        view.unwatch(queue)


# --- API Endpoints ---

@router.get("/", response_class=HTMLResponse)
async def index(request: Request, client: TodoClient = Depends(get_client)):
    title = request.app.title
    return HTMLResponse(client.view.render_page(title=title))


@router.get("/session")
async def session_status(client: TodoClient = Depends(get_client)):
    session = client.session
    return {
        "user_id": session.user_id,
        "anonymous": session.anonymous,
        "state": session.state.value,
        "status": client.view.status,
    }


@router.post("/session/sign-out")
async def sign_out(client: TodoClient = Depends(get_client)):
    logger.info(f"📡 Sign-out requested for {client.session.display_id}")
    client.sign_out()
    return {"user_id": client.session.user_id, "anonymous": client.session.anonymous}


@router.get("/todos")
async def list_todos(client: TodoClient = Depends(get_client)):
    return {"todos": [element.to_dict() for element in client.view.elements]}


@router.post("/todos")
async def submit_todo(text: str = Form(""), client: TodoClient = Depends(get_client)):
    """Form submission: add the trimmed text, clearing the input only on success."""
    logger.info(f"📡 Received new todo: {text!r}")
    client.form.value = text
    doc_id = await client.form.submit()
    return {"created": doc_id is not None, "id": doc_id, "input": client.form.value}


@router.post("/todos/{todo_id}/toggle")
async def toggle_todo(todo_id: str, client: TodoClient = Depends(get_client)):
    element = get_rendered_element(todo_id, client)
    saved = await element.click()
    return {"id": todo_id, "completed": element.completed, "saved": saved}


@router.post("/todos/{todo_id}/delete", status_code=202)
async def delete_todo(todo_id: str, client: TodoClient = Depends(get_client)):
    element = get_rendered_element(todo_id, client)
    requested = await element.context_menu()
    return {"id": todo_id, "deleted": requested}


# --- SSE Endpoint ---
@router.get("/stream")
async def stream(client: TodoClient = Depends(get_client)):
    """ Endpoint for Server-Sent Events (SSE). """
    logger.info("SSE connection opened")
    return StreamingResponse(event_generator(client.view), media_type="text/event-stream")
