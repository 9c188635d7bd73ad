# identity.py
import asyncio
import os
import uuid
from typing import Callable, List, Optional

import httpx
from firebase_admin import auth
from pydantic import BaseModel

from todo_sync.services.session import SessionContext
from todo_sync.utils.logger import logger

IDENTITY_TOOLKIT_URL = "https://identitytoolkit.googleapis.com/v1"


class AuthError(Exception):
    """Sign-in failed; the message is safe to show to the user."""


class AuthUser(BaseModel):
    uid: str
    id_token: Optional[str] = None
    refresh_token: Optional[str] = None
    is_anonymous: bool = False


AuthListener = Callable[[Optional[AuthUser]], None]


def identity_toolkit_url() -> str:
    emulator_host = os.getenv("FIREBASE_AUTH_EMULATOR_HOST")
    if emulator_host:
        return f"http://{emulator_host}/identitytoolkit.googleapis.com/v1"
    return IDENTITY_TOOLKIT_URL


class FirebaseIdentityProvider:
    """
    Client-side Firebase Authentication over the Identity Toolkit REST API.
    Keeps the signed-in user and notifies auth-state listeners on every change.
    """

    def __init__(self, api_key: Optional[str], firebase_app=None,
                 http_client: Optional[httpx.AsyncClient] = None, base_url: Optional[str] = None):
        self.api_key = api_key
        self.firebase_app = firebase_app
        self.base_url = base_url or identity_toolkit_url()
        self.http_client = http_client or httpx.AsyncClient(timeout=30.0)
        self.current_user: Optional[AuthUser] = None
        self._listeners: List[AuthListener] = []

    async def sign_in_anonymously(self) -> AuthUser:
        data = await self._post("accounts:signUp", {"returnSecureToken": True})
        return await self._complete_sign_in(data, is_anonymous=True)

    async def sign_in_with_custom_token(self, token: str) -> AuthUser:
        data = await self._post("accounts:signInWithCustomToken", {"token": token, "returnSecureToken": True})
        return await self._complete_sign_in(data, is_anonymous=False)

    def sign_out(self) -> None:
        self.current_user = None
        self._notify()

    def on_auth_state_changed(self, listener: AuthListener) -> Callable[[], None]:
        """Register a listener; it is called now with the current user and after every change."""
        self._listeners.append(listener)
        listener(self.current_user)

        def unsubscribe():
            if listener in self._listeners:
                self._listeners.remove(listener)
        return unsubscribe

    async def aclose(self) -> None:
        await self.http_client.aclose()

    async def _post(self, endpoint: str, payload: dict) -> dict:
        if not self.api_key:
            raise AuthError("Missing Firebase API key (apiKey in FIREBASE_CONFIG).")
        url = f"{self.base_url}/{endpoint}"
        try:
            response = await self.http_client.post(url, params={"key": self.api_key}, json=payload)
        except httpx.RequestError as exc:
            raise AuthError(f"Network error during sign-in: {exc}") from exc

        if response.status_code != 200:
            try:
                message = response.json().get("error", {}).get("message")
            except ValueError:
                message = None
            raise AuthError(message or f"Sign-in failed with status {response.status_code}")
        return response.json()

    async def _complete_sign_in(self, data: dict, is_anonymous: bool) -> AuthUser:
        id_token = data.get("idToken")
        uid = data.get("localId")
        if not uid:
            # signInWithCustomToken does not echo the uid; read it from the ID token.
            try:
                claims = await asyncio.to_thread(auth.verify_id_token, id_token, app=self.firebase_app)
            except Exception as e:
                raise AuthError(f"Token verification failed: {e}") from e
            uid = claims["uid"]

        self.current_user = AuthUser(
            uid=uid,
            id_token=id_token,
            refresh_token=data.get("refreshToken"),
            is_anonymous=is_anonymous,
        )
        logger.info(f"✅ Signed in as {uid}")
        self._notify()
        return self.current_user

    def _notify(self) -> None:
        for listener in list(self._listeners):
            listener(self.current_user)


class IdentityBootstrapper:
    """
    Signs in (custom token first, anonymous otherwise), then follows auth-state changes.
    Every reported identity reopens the session and restarts the subscription.
    """

    def __init__(self, provider, session: SessionContext, view, on_ready: Callable[[], object],
                 initial_auth_token: Optional[str] = None):
        self.provider = provider
        self.session = session
        self.view = view
        self.on_ready = on_ready
        self.initial_auth_token = initial_auth_token
        self._unsubscribe: Optional[Callable[[], None]] = None

    async def start(self) -> bool:
        try:
            if self.initial_auth_token:
                await self.provider.sign_in_with_custom_token(self.initial_auth_token)
            else:
                await self.provider.sign_in_anonymously()
        except Exception as e:
            logger.error(f"❌ Error initializing Firebase: {e}")
            self.view.set_status(f"Authentication Error: {e}")
            return False

        self._unsubscribe = self.provider.on_auth_state_changed(self._on_auth_state_changed)
        return True

    def stop(self) -> None:
        if self._unsubscribe is not None:
            self._unsubscribe()
            self._unsubscribe = None
        self.session.invalidate()

    def _on_auth_state_changed(self, user: Optional[AuthUser]) -> None:
        if self.session.ready:
            self.session.invalidate()
            self.view.clear()

        if user:
            self.session.open(user.uid)
            self.view.set_status(f"User ID: {user.uid}")
        else:
            fallback_id = str(uuid.uuid4())  # Random ID for unauthenticated users
            self.session.open(fallback_id, anonymous=True)
            self.view.set_status(f"User ID: {fallback_id} (anonymous)")

        logger.info(f"Session identity is now {self.session.user_id}")
        self.on_ready()
