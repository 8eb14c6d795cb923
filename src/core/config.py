"""Configuration from environment variables (.env)."""

import os
from pathlib import Path
from dataclasses import dataclass
from dotenv import load_dotenv

load_dotenv()


@dataclass
class Config:
    project_root: Path
    data_dir: Path
    logs_dir: Path
    supabase_url: str
    supabase_anon_key: str
    store_timeout_seconds: float
    user_timezone: str
    search_debounce_ms: int
    search_min_query_length: int  # Trimmed queries shorter than this never hit the store
    privileged_role: str
    recent_searches_key: str
    recent_searches_limit: int
    local_storage_path: Path

    @classmethod
    def load(cls) -> "Config":
        project_root = Path(__file__).parent.parent.parent
        data_dir = Path(os.getenv("JANMAT_DATA_DIR", str(project_root / "data")))
        return cls(
            project_root=project_root,
            data_dir=data_dir,
            logs_dir=Path(os.getenv("JANMAT_LOGS_DIR", str(project_root / "logs"))),
            supabase_url=os.getenv("SUPABASE_URL", ""),
            supabase_anon_key=os.getenv("SUPABASE_ANON_KEY", ""),
            store_timeout_seconds=float(os.getenv("STORE_TIMEOUT_SECONDS", "10")),
            user_timezone=os.getenv("USER_TIMEZONE", os.getenv("TZ", "UTC")),
            search_debounce_ms=int(os.getenv("SEARCH_DEBOUNCE_MS", "300")),
            search_min_query_length=int(os.getenv("SEARCH_MIN_QUERY_LENGTH", "3")),
            privileged_role=os.getenv("PRIVILEGED_ROLE", "government"),
            recent_searches_key=os.getenv("RECENT_SEARCHES_KEY", "janmat-recent-searches"),
            recent_searches_limit=int(os.getenv("RECENT_SEARCHES_LIMIT", "5")),
            local_storage_path=data_dir / "local_storage.json",
        )

    def validate(self) -> list[str]:
        errors = []
        if not self.supabase_url:
            errors.append("SUPABASE_URL is not set")
        if not self.supabase_anon_key:
            errors.append("SUPABASE_ANON_KEY is not set")
        if self.search_debounce_ms < 0:
            errors.append(f"SEARCH_DEBOUNCE_MS must be >= 0, got {self.search_debounce_ms}")
        if self.recent_searches_limit < 1:
            errors.append(f"RECENT_SEARCHES_LIMIT must be >= 1, got {self.recent_searches_limit}")
        return errors


config = Config.load()
