# client.py
#
# Wires identity, subscription, rendering and mutations into one client session.

import os
import json

import firebase_admin
from firebase_admin import credentials, firestore

from todo_sync.models.config import AppConfig
from todo_sync.services.gateway import MutationGateway
from todo_sync.services.identity import FirebaseIdentityProvider, IdentityBootstrapper
from todo_sync.services.session import SessionContext
from todo_sync.services.subscription import SubscriptionManager
from todo_sync.services.todo_store import FirestoreTodoStore
from todo_sync.ui.renderer import TodoForm, TodoListView
from todo_sync.utils.logger import logger


class TodoClient:

    def __init__(self, config: AppConfig, provider, store):
        self.config = config
        self.provider = provider
        self.store = store
        self.session = SessionContext(config.app_id)
        self.gateway = MutationGateway(self.session, store)
        self.view = TodoListView(self.gateway)
        self.form = TodoForm(self.gateway)
        self.subscriptions = SubscriptionManager(self.session, store, self.view)
        self.identity = IdentityBootstrapper(
            provider,
            self.session,
            self.view,
            on_ready=self.subscriptions.start,
            initial_auth_token=config.initial_auth_token,
        )

    async def start(self) -> bool:
        logger.info(f"Starting todo client for app '{self.config.app_id}'")
        return await self.identity.start()

    def sign_out(self) -> None:
        self.provider.sign_out()

    async def stop(self) -> None:
        self.subscriptions.stop()
        self.identity.stop()
        if hasattr(self.provider, "aclose"):
            await self.provider.aclose()
        logger.info("Todo client stopped")


def initialize_firebase(config: AppConfig):
    """Initialize the Firebase Admin SDK from FIREBASE_CREDENTIALS_JSON or application default credentials."""
    raw_credentials = os.getenv("FIREBASE_CREDENTIALS_JSON")
    if raw_credentials:
        cred = credentials.Certificate(json.loads(raw_credentials))
    else:
        cred = credentials.ApplicationDefault()

    options = {}
    if config.project_id:
        options["projectId"] = config.project_id
    return firebase_admin.initialize_app(cred, options, name=config.app_id)


def build_client(config: AppConfig) -> TodoClient:
    firebase_app = initialize_firebase(config)
    db = firestore.client(firebase_app)
    provider = FirebaseIdentityProvider(config.api_key, firebase_app)
    return TodoClient(config, provider, FirestoreTodoStore(db))
