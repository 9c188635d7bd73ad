import os
import json
from typing import Any, Dict, Optional
from pydantic import BaseModel, Field

DEFAULT_APP_ID = "default-app-id"


class AppConfig(BaseModel):
    """
    Inputs for one client session.

    - app_id: namespace isolating this deployment's data (default "default-app-id")
    - firebase_config: Firebase web config object (apiKey, projectId, ...), default {}
    - initial_auth_token: optional custom token; anonymous sign-in is used without it
    """
    app_id: str = DEFAULT_APP_ID
    firebase_config: Dict[str, Any] = Field(default_factory=dict)
    initial_auth_token: Optional[str] = None

    @property
    def api_key(self) -> Optional[str]:
        return self.firebase_config.get("apiKey")

    @property
    def project_id(self) -> Optional[str]:
        return self.firebase_config.get("projectId")

    @classmethod
    def from_env(cls) -> "AppConfig":
        """Build the config from APP_ID, FIREBASE_CONFIG and INITIAL_AUTH_TOKEN."""
        raw_config = os.getenv("FIREBASE_CONFIG") or "{}"
        try:
            firebase_config = json.loads(raw_config)
        except json.JSONDecodeError as e:
            raise ValueError(f"FIREBASE_CONFIG is not valid JSON: {e}") from e
        if not isinstance(firebase_config, dict):
            raise ValueError("FIREBASE_CONFIG must be a JSON object.")

        return cls(
            app_id=os.getenv("APP_ID") or DEFAULT_APP_ID,
            firebase_config=firebase_config,
            initial_auth_token=os.getenv("INITIAL_AUTH_TOKEN") or None,
        )
