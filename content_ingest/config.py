from __future__ import annotations

import json
from dataclasses import dataclass
from pathlib import Path

CONFIG_PATH = Path(__file__).resolve().parent.parent / "config.json"

DEFAULTS = {
    "db_path": "content.db",
    "gateway": "sqlite",
    "rest_url": "http://localhost:54321",
    "rest_api_key_env": "CONTENT_INGEST_API_KEY",
    "rest_timeout": 30.0,
    "default_question_count": 5,
    "default_difficulty": "intermediate",
    "max_upload_bytes": 10 * 1024 * 1024,
    "random_seed": None,
    "log_level": "INFO",
}


@dataclass
class Settings:
    db_path: str = DEFAULTS["db_path"]
    gateway: str = DEFAULTS["gateway"]  # sqlite | rest
    rest_url: str = DEFAULTS["rest_url"]
    rest_api_key_env: str = DEFAULTS["rest_api_key_env"]
    rest_timeout: float = DEFAULTS["rest_timeout"]
    default_question_count: int = DEFAULTS["default_question_count"]
    default_difficulty: str = DEFAULTS["default_difficulty"]
    max_upload_bytes: int = DEFAULTS["max_upload_bytes"]
    random_seed: int | None = DEFAULTS["random_seed"]
    log_level: str = DEFAULTS["log_level"]

    @property
    def project_root(self) -> Path:
        return Path(__file__).resolve().parent.parent

    @property
    def db_full_path(self) -> Path:
        return self.project_root / self.db_path

    def to_dict(self) -> dict:
        return {
            "db_path": self.db_path,
            "gateway": self.gateway,
            "rest_url": self.rest_url,
            "rest_api_key_env": self.rest_api_key_env,
            "rest_timeout": self.rest_timeout,
            "default_question_count": self.default_question_count,
            "default_difficulty": self.default_difficulty,
            "max_upload_bytes": self.max_upload_bytes,
            "random_seed": self.random_seed,
            "log_level": self.log_level,
        }


def load_settings() -> Settings:
    if CONFIG_PATH.exists():
        raw = json.loads(CONFIG_PATH.read_text())
        known = {f.name for f in Settings.__dataclass_fields__.values()}
        filtered = {k: v for k, v in raw.items() if k in known}
        return Settings(**filtered)
    return Settings()


def save_settings(settings: Settings) -> None:
    CONFIG_PATH.write_text(json.dumps(settings.to_dict(), indent=4) + "\n")
