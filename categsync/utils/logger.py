"""2025-10-02 - logger du projet."""

from __future__ import annotations

import functools
import logging
import logging.handlers
import os
from collections.abc import Callable
from dataclasses import dataclass
from typing import Any, Optional, ParamSpec, Protocol, TypeVar, cast

from categsync.utils.config import LOG_FILE_PATH, LOG_LEVEL, LOG_ROTATION_DAYS
from categsync.utils.log_rotation import rotate_logs


# ---------- Protocole (contrat) ----------
class LoggerProtocol(Protocol):
    """
    Interface minimale d'un logger du projet.

    Les méthodes `debug`, `info`, `warning`, `error` et `exception` journalisent aux niveaux habituels,
    `get_child` crée un logger enfant (nom suffixé).
    """

    def debug(self, msg: str, *args: object, **kwargs: Any) -> None: ...

    def info(self, msg: str, *args: object, **kwargs: Any) -> None: ...

    def warning(self, msg: str, *args: object, **kwargs: Any) -> None: ...

    def error(self, msg: str, *args: object, **kwargs: Any) -> None: ...

    def exception(self, msg: str, *args: object, **kwargs: Any) -> None: ...

    def get_child(self, suffix: str) -> LoggerProtocol: ...


# ---------- Classe concrète (instanciable) ----------


@dataclass(frozen=True)
class CategsyncLogger:
    """
    Logger concret du projet, simple façade sur `logging.Logger`.

    Attributes:
        _base: le logger stdlib sous-jacent.
    """

    _base: logging.Logger

    # expose la même API que le Protocol
    def debug(self, msg: str, *args: object, **kwargs: Any) -> None:
        self._base.debug(msg, *args, **kwargs)

    def info(self, msg: str, *args: object, **kwargs: Any) -> None:
        self._base.info(msg, *args, **kwargs)

    def warning(self, msg: str, *args: object, **kwargs: Any) -> None:
        self._base.warning(msg, *args, **kwargs)

    def error(self, msg: str, *args: object, **kwargs: Any) -> None:
        self._base.error(msg, *args, **kwargs)

    def exception(self, msg: str, *args: object, **kwargs: Any) -> None:
        self._base.exception(msg, *args, **kwargs)

    def get_child(self, suffix: str) -> LoggerProtocol:
        """
        Crée un logger enfant avec le suffixe donné.
        """
        return CategsyncLogger(self._base.getChild(suffix))


def _ensure_handlers(base: logging.Logger, global_log_file: str, script_log_file: str) -> None:
    if getattr(base, "_categsync_configured", False):
        return

    formatter = logging.Formatter("%(asctime)s - %(levelname)s - [%(name)s] %(message)s")

    stream = logging.StreamHandler()
    stream.setFormatter(formatter)
    base.addHandler(stream)

    # Global log: rotation quotidienne à minuit, conserver 14 jours
    fh_global = logging.handlers.TimedRotatingFileHandler(
        filename=global_log_file,
        when="midnight",
        backupCount=14,
        encoding="utf-8",
        utc=False,
    )
    fh_global.setFormatter(formatter)
    base.addHandler(fh_global)

    # Script log: même politique
    fh_script = logging.handlers.TimedRotatingFileHandler(
        filename=script_log_file,
        when="midnight",
        backupCount=14,
        encoding="utf-8",
        utc=False,
    )
    fh_script.setFormatter(formatter)
    base.addHandler(fh_script)

    # Évite double impression si root a des handlers
    base.propagate = False

    setattr(base, "_categsync_configured", True)


_rotated: set[str] = set()


def get_logger(script_name: str) -> LoggerProtocol:
    """
    Constructeur de logger.

    Crée le dossier de logs si besoin, purge les vieux fichiers (une fois par script et par process)
    et branche les handlers console / fichier global / fichier du script.

    :param script_name: Nom du script.
    :return: Instance de logger.
    """
    os.makedirs(LOG_FILE_PATH, exist_ok=True)
    global_log_file = os.path.join(LOG_FILE_PATH, "Categsync.log")
    script_log_file = os.path.join(LOG_FILE_PATH, f"{script_name}.log")

    base = logging.getLogger(script_name)
    base.setLevel(getattr(logging, LOG_LEVEL, logging.INFO))

    if script_name not in _rotated:
        _rotated.add(script_name)
        try:
            rotate_logs(LOG_FILE_PATH, LOG_ROTATION_DAYS, logf=script_log_file)
        except OSError as exc:
            _ensure_handlers(base, global_log_file, script_log_file)
            CategsyncLogger(base).warning("Rotation des logs échouée: %s", exc)

    _ensure_handlers(base, global_log_file, script_log_file)
    return CategsyncLogger(base)  # ← classe concrète, pas le Protocol


# ---------- Utilities ----------
def ensure_logger(logger: LoggerProtocol | None, module: str) -> LoggerProtocol:
    """
    Retourne le logger fourni, ou en crée un pour `module`.
    """
    if logger is None:
        return get_logger(module)
    return logger


# ---------- Décorateur type-safe ----------
P = ParamSpec("P")
R = TypeVar("R")


def with_child_logger(func: Callable[P, R]) -> Callable[P, R]:
    """
    Injecte un logger enfant (module.fonction) si l'appelant n'en fournit pas.

    :param func: La fonction à décorer
    :return: La fonction décorée
    """

    @functools.wraps(func)
    def wrapper(*args: P.args, **kwargs: P.kwargs) -> R:
        current = cast(Optional[LoggerProtocol], kwargs.get("logger"))
        if current is None:
            # Premier hop : on prend le nom de module pour initialiser
            base = ensure_logger(current, func.__module__)
            kwargs["logger"] = _get_or_child(base, func.__name__)
        # Sinon on ne touche pas au logger transmis (pas d'empilement)
        return func(*args, **kwargs)

    return wrapper


def _get_or_child(logger: LoggerProtocol, suffix: str) -> LoggerProtocol:
    base_name = getattr(getattr(logger, "_base", None), "name", "")
    if base_name.endswith(f".{suffix}") or base_name == suffix:
        return logger
    return logger.get_child(suffix)
