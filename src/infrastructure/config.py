from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path

from src.domain.services.demo_credentials import DEFAULT_DEMO_PASSWORD


def _flag(name: str, default: str = "0") -> bool:
    return os.getenv(name, default) == "1"


@dataclass(frozen=True)
class Settings:
    """Environment-driven settings.

    The identity provider counts as configured only when both the Supabase
    URL and anon key are present and SUPABASE_DISABLED is not set.
    """

    supabase_url: str | None = None
    supabase_anon_key: str | None = None
    supabase_disabled: bool = False
    storage_dir: Path = Path(".local_storage")
    demo_password: str = DEFAULT_DEMO_PASSWORD
    demo_catalog_path: Path | None = None
    prefer_demo: bool = True
    use_local_db: bool = False
    log_level: str = "INFO"
    verbose_logging: bool = False
    env: str = "development"

    @property
    def console_logging(self) -> bool:
        return self.verbose_logging or self.env == "development"

    @property
    def provider_configured(self) -> bool:
        return not self.supabase_disabled and bool(self.supabase_url) and bool(self.supabase_anon_key)

    @classmethod
    def from_env(cls) -> Settings:
        catalog_path = os.getenv("DEMO_CATALOG_PATH")
        return cls(
            supabase_url=os.getenv("SUPABASE_URL") or None,
            supabase_anon_key=os.getenv("SUPABASE_ANON_KEY") or None,
            supabase_disabled=_flag("SUPABASE_DISABLED"),
            storage_dir=Path(os.getenv("SESSION_STORAGE_DIR", ".local_storage")),
            demo_password=os.getenv("DEMO_PASSWORD", DEFAULT_DEMO_PASSWORD),
            demo_catalog_path=Path(catalog_path) if catalog_path else None,
            prefer_demo=_flag("DEMO_LOGIN_FIRST", "1"),
            use_local_db=_flag("USE_LOCAL_DB"),
            log_level=os.getenv("LOG_LEVEL", "INFO"),
            verbose_logging=_flag("AUTH_VERBOSE_LOGGING"),
            env=os.getenv("ENV", "development"),
        )
