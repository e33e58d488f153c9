"""Application configuration (settings and environment).

Single source of truth for all configuration. Uses pydantic-settings
with .env support. Backend credentials and role capability sets are
validated at load time.
"""

from functools import lru_cache

from pydantic import SecretStr, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from journalshare.domain.enums import JournalRole


def _parse_roles(raw: str, setting_name: str) -> frozenset[JournalRole]:
    """Parse a comma-separated role list ('editor,admin') into a role set."""
    roles: set[JournalRole] = set()
    for item in raw.split(","):
        value = item.strip().lower()
        if not value:
            continue
        try:
            roles.add(JournalRole(value))
        except ValueError as e:
            raise ValueError(
                f"{setting_name} contains unknown role {value!r}; "
                f"allowed: {', '.join(JournalRole.values())}"
            ) from e
    return frozenset(roles)


class Settings(BaseSettings):
    """Application settings loaded from environment and .env.

    Role capability sets are independent comma-separated lists; they are
    never derived from an ordering of roles.
    """

    # App
    app_name: str = "journalshare"
    app_version: str = "1.0.0"
    debug: bool = False

    # Document store: "firestore" (REST API) or "memory" (in-process, local runs and tests)
    database_backend: str = "firestore"
    transaction_max_attempts: int = 5

    # Firebase / Firestore: use key (env) or path (file).
    firebase_service_account_key: SecretStr | None = None
    firebase_service_account_path: str | None = None
    # Audience for ID token verification; defaults to the service account's project_id.
    firebase_project_id: str | None = None

    # Role capability sets
    may_add_roles: str = "reporter,editor,admin"
    may_delete_roles: str = "editor,admin"
    share_roles: str = "admin"
    journal_update_roles: str = "admin"

    # Store change triggers: POST /triggers/inventory must send X-Trigger-Secret.
    trigger_secret: SecretStr | None = None

    # CORS
    allowed_origins: str = "http://localhost:3000"

    # Request / middleware
    request_timeout_seconds: int = 60
    request_id_header: str = "X-Request-ID"
    rate_limit_enabled: bool = True

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
        case_sensitive=False,
    )

    @property
    def may_add_role_set(self) -> frozenset[JournalRole]:
        return _parse_roles(self.may_add_roles, "MAY_ADD_ROLES")

    @property
    def may_delete_role_set(self) -> frozenset[JournalRole]:
        return _parse_roles(self.may_delete_roles, "MAY_DELETE_ROLES")

    @property
    def share_role_set(self) -> frozenset[JournalRole]:
        return _parse_roles(self.share_roles, "SHARE_ROLES")

    @property
    def journal_update_role_set(self) -> frozenset[JournalRole]:
        return _parse_roles(self.journal_update_roles, "JOURNAL_UPDATE_ROLES")

    @model_validator(mode="after")
    def validate_backend_and_roles(self) -> "Settings":
        """Validate store backend and role sets.

        - Firestore: FIREBASE_SERVICE_ACCOUNT_KEY or FIREBASE_SERVICE_ACCOUNT_PATH required.
        - Memory: no credentials; data lives for the process lifetime only.
        """
        if self.database_backend == "firestore":
            has_key = (
                self.firebase_service_account_key
                and self.firebase_service_account_key.get_secret_value()
            )
            if not has_key and not self.firebase_service_account_path:
                raise ValueError(
                    "When database_backend is 'firestore', set FIREBASE_SERVICE_ACCOUNT_KEY (full JSON string) "
                    "or FIREBASE_SERVICE_ACCOUNT_PATH (path to JSON file)."
                )
        elif self.database_backend != "memory":
            raise ValueError(
                f"database_backend must be 'firestore' or 'memory', got: {self.database_backend!r}"
            )
        if self.transaction_max_attempts < 1:
            raise ValueError("TRANSACTION_MAX_ATTEMPTS must be at least 1")
        # Parse eagerly so a typo fails at startup rather than on the first request.
        self.may_add_role_set
        self.may_delete_role_set
        self.journal_update_role_set
        if not self.share_role_set:
            raise ValueError("SHARE_ROLES must name at least one role")
        return self


@lru_cache
def get_settings() -> Settings:
    """Return cached application settings (single instance per process).

    Validation runs on first call, not at import time. In tests, call
    get_settings.cache_clear() before overriding env vars so the next
    get_settings() uses the new values.

    Returns:
        Loaded and validated Settings instance.
    """
    return Settings()
