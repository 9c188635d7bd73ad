import asyncio
import json
import itertools
import threading

import httpx
import pytest

from todo_sync.client import TodoClient
from todo_sync.models.config import AppConfig
from todo_sync.models.todo import Todo
from todo_sync.services import identity
from todo_sync.services.identity import FirebaseIdentityProvider

API_KEY = "test-api-key"


class MemorySubscription:
    def __init__(self, store, path, on_snapshot):
        self.store = store
        self.path = path
        self.on_snapshot = on_snapshot
        self.active = True

    def unsubscribe(self):
        self.active = False
        self.store.subscriptions.remove(self)


class MemoryTodoStore:
    """In-memory stand-in for the Firestore store boundary."""

    def __init__(self):
        self.collections = {}
        self.subscriptions = []
        self.writes = []
        self.failures = {}
        self._ids = itertools.count(1)
        self._lock = threading.Lock()

    def fail(self, operation, error=None):
        self.failures[operation] = error or RuntimeError(f"{operation} failed")

    def _check(self, operation):
        error = self.failures.pop(operation, None)
        if error is not None:
            raise error

    def add(self, path, data):
        self._check("add")
        with self._lock:
            doc_id = f"todo-{next(self._ids)}"
            self.collections.setdefault(path, {})[doc_id] = dict(data)
            self.writes.append(("add", path, doc_id, dict(data)))
        self._publish(path)
        return doc_id

    def update(self, path, doc_id, fields):
        self._check("update")
        with self._lock:
            docs = self.collections.get(path, {})
            if doc_id not in docs:
                raise KeyError(f"No document to update: {doc_id}")
            docs[doc_id].update(fields)
            self.writes.append(("update", path, doc_id, dict(fields)))
        self._publish(path)

    def delete(self, path, doc_id):
        self._check("delete")
        with self._lock:
            self.collections.get(path, {}).pop(doc_id, None)
            self.writes.append(("delete", path, doc_id, None))
        self._publish(path)

    def snapshot(self, path):
        return [Todo.from_document(doc_id, data) for doc_id, data in self.collections.get(path, {}).items()]

    def subscribe(self, path, on_snapshot, on_error):
        subscription = MemorySubscription(self, path, on_snapshot)
        subscription.on_error = on_error
        self.subscriptions.append(subscription)
        on_snapshot(self.snapshot(path))
        return subscription

    def _publish(self, path):
        for subscription in list(self.subscriptions):
            if subscription.path == path and subscription.active:
                subscription.on_snapshot(self.snapshot(path))


def identity_toolkit_handler(request: httpx.Request) -> httpx.Response:
    """Fake Identity Toolkit: anonymous sign-up always works, custom token 'bad' is rejected."""
    assert request.url.params["key"] == API_KEY
    body = json.loads(request.content)
    if request.url.path.endswith("accounts:signUp"):
        return httpx.Response(200, json={
            "idToken": "anon-id-token",
            "refreshToken": "refresh",
            "expiresIn": "3600",
            "localId": "anon-uid",
        })
    if request.url.path.endswith("accounts:signInWithCustomToken"):
        if body["token"] == "bad":
            return httpx.Response(400, json={"error": {"code": 400, "message": "INVALID_CUSTOM_TOKEN"}})
        return httpx.Response(200, json={
            "idToken": f"id-for-{body['token']}",
            "refreshToken": "refresh",
            "expiresIn": "3600",
        })
    return httpx.Response(404, json={"error": {"message": "NOT_FOUND"}})


def fake_verify_id_token(id_token, app=None, check_revoked=False):
    return {"uid": id_token[len("id-for-"):]}


async def settle():
    """Let snapshot deliveries scheduled on the event loop run."""
    for _ in range(3):
        await asyncio.sleep(0)


@pytest.fixture
def store():
    return MemoryTodoStore()


@pytest.fixture
def verify_id_token(monkeypatch):
    monkeypatch.setattr(identity.auth, "verify_id_token", fake_verify_id_token)


@pytest.fixture
def make_provider(verify_id_token):
    def factory(handler=identity_toolkit_handler):
        http_client = httpx.AsyncClient(transport=httpx.MockTransport(handler))
        return FirebaseIdentityProvider(API_KEY, http_client=http_client, base_url="https://identity.test/v1")
    return factory


@pytest.fixture
def make_client(store, make_provider):
    def factory(token=None, app_id="test-app"):
        config = AppConfig(app_id=app_id, firebase_config={"apiKey": API_KEY}, initial_auth_token=token)
        return TodoClient(config, make_provider(), store)
    return factory


class FakeDocumentSnapshot:
    def __init__(self, doc_id, data):
        self.id = doc_id
        self._data = data

    def to_dict(self):
        return dict(self._data)


class FakeWatch:
    def __init__(self, callback):
        self.callback = callback
        self.active = True

    def unsubscribe(self):
        self.active = False


class FakeCollection:
    def __init__(self, db, path):
        self.db = db
        self.path = path

    def on_snapshot(self, callback):
        watch = FakeWatch(callback)
        self.db.watches.setdefault(self.path, []).append(watch)
        return watch


class FakeFirestore:
    """Just enough of google.cloud.firestore.Client to open listeners."""

    def __init__(self):
        self.watches = {}

    def collection(self, path):
        return FakeCollection(self, path)

    def push(self, path, docs):
        for watch in self.watches.get(path, []):
            if watch.active:
                watch.callback([FakeDocumentSnapshot(doc_id, data) for doc_id, data in docs], [], None)
