"""Environment-driven configuration."""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path

from packages.common.paths import data_dir


@dataclass(frozen=True)
class Settings:
    gemini_api_key: str
    gemini_model: str
    supabase_url: str
    supabase_anon_key: str
    data_dir: Path
    public_base_url: str
    log_level: str

    @classmethod
    def from_env(cls) -> "Settings":
        return cls(
            gemini_api_key=os.getenv("GEMINI_API_KEY", ""),
            gemini_model=os.getenv("GEMINI_MODEL", "gemini-2.5-flash"),
            supabase_url=os.getenv("SUPABASE_URL", "").strip(),
            supabase_anon_key=os.getenv("SUPABASE_ANON_KEY", "").strip(),
            data_dir=data_dir(),
            public_base_url=os.getenv("PUBLIC_BASE_URL", "http://localhost:8000"),
            log_level=os.getenv("LOG_LEVEL", "INFO").upper(),
        )

    @property
    def remote_configured(self) -> bool:
        return bool(self.supabase_url and self.supabase_anon_key)
