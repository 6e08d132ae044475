"""Configuration from environment variables (.env)."""

import os
from pathlib import Path
from dataclasses import dataclass
from dotenv import load_dotenv

load_dotenv()


def _env_flag(name: str, default: bool) -> bool:
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return default
    return raw.strip().lower() in ("1", "true", "yes", "on")


@dataclass
class Config:
    project_root: Path
    logs_dir: Path
    search_api_url: str
    search_request_timeout: float  # seconds, transport-level only
    inline_debounce_ms: int
    index_users_enabled: bool
    index_dashboards_enabled: bool

    @classmethod
    def load(cls) -> "Config":
        project_root = Path(__file__).parent.parent.parent
        logs_dir = os.getenv("CATALOG_SEARCH_LOGS_DIR", "")
        return cls(
            project_root=project_root,
            logs_dir=Path(logs_dir) if logs_dir else project_root / "logs",
            search_api_url=os.getenv("SEARCH_API_URL", "http://localhost:5000/api/search/v0"),
            search_request_timeout=float(os.getenv("SEARCH_REQUEST_TIMEOUT", "10.0")),
            inline_debounce_ms=int(os.getenv("INLINE_DEBOUNCE_MS", "350")),
            index_users_enabled=_env_flag("INDEX_USERS_ENABLED", True),
            index_dashboards_enabled=_env_flag("INDEX_DASHBOARDS_ENABLED", True),
        )

    def validate(self) -> list[str]:
        errors = []
        if not self.search_api_url:
            errors.append("SEARCH_API_URL is not set")
        if self.inline_debounce_ms < 0:
            errors.append(f"INLINE_DEBOUNCE_MS must be >= 0, got {self.inline_debounce_ms}")
        if self.search_request_timeout <= 0:
            errors.append(
                f"SEARCH_REQUEST_TIMEOUT must be positive, got {self.search_request_timeout}"
            )
        return errors


config = Config.load()
