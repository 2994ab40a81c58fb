"""Définition et chargement des paramètres de configuration applicative.

Objectif du module
------------------
- Centraliser les paramètres (env/.env) via Pydantic Settings
- Résoudre le fichier `.env` à utiliser selon la stratégie: ENV_FILE > .env.{APP_ENV} > .env
"""

import os
from pathlib import Path

from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

WEEKDAYS = (
    "monday",
    "tuesday",
    "wednesday",
    "thursday",
    "friday",
    "saturday",
    "sunday",
)

# Détermination du fichier .env à utiliser avec priorité:
# 1) ENV_FILE (chemin explicite)
# 2) .env.{APP_ENV} si présent
# 3) .env (défaut)
_cwd = Path.cwd()
_env_file_from_env = os.getenv("ENV_FILE")
if _env_file_from_env:
    _ENV_FILE_PATH = _env_file_from_env
else:
    _app_env = os.getenv("APP_ENV", "dev")
    _candidate_specific = _cwd / f".env.{_app_env}"
    _candidate_default = _cwd / ".env"
    if _candidate_specific.exists():
        _ENV_FILE_PATH = _candidate_specific
    else:
        _ENV_FILE_PATH = _candidate_default


class Settings(BaseSettings):
    """Modèle de configuration chargé depuis l'environnement et .env."""

    model_config = SettingsConfigDict(
        env_file=_ENV_FILE_PATH,
        env_file_encoding="utf-8",
        env_ignore_empty=True,
        case_sensitive=False,
        extra="ignore",
    )
    APP_NAME: str = "clocwise-backend"
    APP_ENV: str = "dev"
    APP_DEBUG: bool = False
    APP_HOST: str = "0.0.0.0"
    APP_PORT: int = 5000
    API_PREFIX: str = "/api"
    LOG_LEVEL: str = "INFO"

    # Stockage primaire (Postgres attendu); absent => stockage mémoire seul
    DATABASE_URL: str | None = None
    DB_CONNECT_TIMEOUT_S: int = 5
    DB_POOL_TIMEOUT_S: float = 5.0
    DB_STATEMENT_TIMEOUT_MS: int = 10_000
    # Fenêtre pendant laquelle le primaire est ignoré après une panne
    STORE_RETRY_AFTER_S: float = 30.0
    FALLBACK_ID_START: int = 1_000_000_000

    # JWT/Auth
    JWT_SECRET: str = "dev-secret-change-me"
    JWT_ALG: str = "HS256"
    JWT_EXPIRES_DAYS: int = 30
    PASSWORD_MIN_LENGTH: int = 6

    # Statistiques / pagination
    WEEK_START: str = "sunday"
    DEFAULT_PAGE_SIZE: int = 50
    MAX_PAGE_SIZE: int = 500

    @field_validator("WEEK_START")
    @classmethod
    def _check_week_start(cls, value: str) -> str:
        """Valide le premier jour de semaine (nom anglais du jour)."""
        day = value.strip().lower()
        if day not in WEEKDAYS:
            raise ValueError(f"WEEK_START must be one of {', '.join(WEEKDAYS)}")
        return day


def get_settings() -> Settings:
    """Construit et retourne la configuration de l'application."""
    return Settings()
