from pathlib import Path

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

BASE_DIR = Path(__file__).resolve().parent.parent


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=BASE_DIR / ".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # ── App ──────────────────────────────────────────────
    app_name: str = "HistoryGraph"
    app_version: str = "0.1.0"
    debug: bool = False
    api_key: str = "changeme"

    # ── Windowing ────────────────────────────────────────
    graph_window_size: int = Field(default=100, ge=1)
    graph_reuse_tightness: float = Field(default=0.6, gt=0, le=1)
    graph_chronological_edges: bool = False

    # ── Layout ───────────────────────────────────────────
    graph_level_step: float = Field(default=150.0, ge=0)
    graph_time_step: float = Field(default=100.0, ge=0)
    graph_time_shift: float = Field(default=40.0, ge=0)

    # ── Sessions ─────────────────────────────────────────
    graph_max_sessions: int = Field(default=256, ge=1)

    # ── Server ───────────────────────────────────────────
    host: str = "0.0.0.0"
    port: int = 8000


settings = Settings()
