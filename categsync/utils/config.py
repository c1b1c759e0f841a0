"""2025-10-02 - module config en lien avec env."""

# config.py
from __future__ import annotations

import os

from dotenv import load_dotenv

# Chargement du .env (chemin surchargeable pour les conteneurs)
load_dotenv(os.getenv("CATEGSYNC_ENV_FILE", ".env"))


class ConfigError(Exception):
    """
    Erreur de configuration (.env / variables d'environnement).
    """


# --- Fonctions utilitaires ---


def get_required(key: str) -> str:
    """
    Récupère la valeur d'une variable env requise.

    Lève ConfigError si absente.
    """
    value = os.getenv(key)
    if value is None:
        raise ConfigError(f"[CONFIG ERROR] La variable {key} est requise mais absente.")
    return value


def get_bool(key: str, default: str = "false") -> bool:
    """
    Retourne la variable env convertie en booléen.
    """
    return os.getenv(key, default).lower() in ("true", "1", "yes", "y")


def get_str(key: str, default: str = "") -> str:
    """
    Retourne la variable env sous forme de chaîne.
    """
    return os.getenv(key, default)


def get_int(key: str, default: int = 0) -> int:
    """
    Retourne la variable env convertie en entier.

    Lève ConfigError si conversion impossible.
    """
    raw = os.getenv(key, str(default))
    try:
        return int(raw)
    except ValueError as exc:
        raise ConfigError(f"[CONFIG ERROR] La variable {key} doit être un entier (valeur: {raw!r}).") from exc


def get_positive_int(key: str, default: int) -> int:
    """
    Comme get_int, mais refuse les valeurs <= 0.
    """
    value = get_int(key, default)
    if value <= 0:
        raise ConfigError(f"[CONFIG ERROR] La variable {key} doit être > 0 (valeur: {value}).")
    return value


# --- Variables d'environnement accessibles globalement ---

# LOGS
LOG_FILE_PATH: str = get_str("LOG_FILE_PATH", "./logs")
LOG_ROTATION_DAYS: int = get_int("LOG_ROTATION_DAYS", 30)
LOG_LEVEL: str = get_str("LOG_LEVEL", "INFO").upper()

# EXTRACTION
CATEGORY_MARKER: str = get_str("CATEGORY_MARKER", "/category/")
SLUG_MAX_LENGTH: int = get_positive_int("SLUG_MAX_LENGTH", 30)
MEMO_KEYWORD: str = get_str("MEMO_KEYWORD", "memo").lower()
INFORMANT_MARKER: str = get_str("INFORMANT_MARKER", "ci").lower()

# TAXONOMIE
DEFAULT_CATEGORY_SLUG: str = get_str("DEFAULT_CATEGORY_SLUG", "intel-quick-updates").lower()
DEFAULT_CATEGORY_NAME: str = get_str("DEFAULT_CATEGORY_NAME", "Intel Quick Updates")

# RECONCILIATION
RECONCILE_WORKERS: int = get_positive_int("RECONCILE_WORKERS", 4)
SYNC_STATE_NAME: str = get_str("SYNC_STATE_NAME", "category_reconcile")

# DB (lues à la connexion, cf. models/db_config.py)
DB_HOST: str = get_str("DB_HOST", "localhost")
DB_PORT: int = get_int("DB_PORT", 3306)
