from typing import Literal, Optional

from pydantic import PrivateAttr
from pydantic_settings import BaseSettings

from services.errors import ConfigurationError


class Settings(BaseSettings):
    app_name: str = "Loan Desk API"
    debug: bool = False
    log_level: str = "INFO"

    # Hosted backend: SQLAlchemy URL plus the key used to sign sessions
    backend_url: Optional[str] = None
    backend_api_key: Optional[str] = None

    storage_mode: Literal["auto", "remote", "local"] = "auto"
    local_store_path: Optional[str] = None

    session_ttl_minutes: int = 60
    workflow_strict: bool = False
    cors_origins: str = "http://localhost:3000,http://127.0.0.1:3000,http://localhost:5173"

    model_config = {
        "env_file": ".env",
        "env_file_encoding": "utf-8",
        "extra": "ignore",
    }

    _is_sqlite: bool = PrivateAttr(default=False)
    _is_postgresql: bool = PrivateAttr(default=False)

    def model_post_init(self, __context: object) -> None:
        _scheme = (self.backend_url or "").split(":")[0].lower()
        object.__setattr__(self, "_is_sqlite", "sqlite" in _scheme)
        object.__setattr__(self, "_is_postgresql", "postgresql" in _scheme)

    @property
    def is_sqlite(self) -> bool:
        return self._is_sqlite

    @property
    def is_postgresql(self) -> bool:
        return self._is_postgresql

    @property
    def missing_backend_settings(self) -> list[str]:
        missing = []
        if not self.backend_url:
            missing.append("BACKEND_URL")
        if not self.backend_api_key:
            missing.append("BACKEND_API_KEY")
        return missing

    @property
    def is_backend_configured(self) -> bool:
        return not self.missing_backend_settings

    def resolve_storage_mode(self) -> str:
        """Return "remote" or "local"; raise when remote is forced but unconfigured."""
        if self.storage_mode == "local":
            return "local"
        if self.is_backend_configured:
            return "remote"
        if self.storage_mode == "remote":
            raise ConfigurationError(
                "Hosted backend is not configured. Missing: " + ", ".join(self.missing_backend_settings)
            )
        return "local"


settings = Settings()
