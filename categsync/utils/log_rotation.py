"""2025-10-02 - module rotation de logs."""

import os
import time


def rotate_logs(log_dir: str, keep_days: int = 30, logf: str | None = None) -> int:
    """
    Supprime les fichiers *.log* de log_dir plus vieux que keep_days.

    Écrit les actions dans logf si fourni. Retourne le nombre de fichiers supprimés.
    """
    cutoff = time.time() - (keep_days * 86400)
    removed = 0

    def log(message: str) -> None:
        if logf:
            with open(logf, "a", encoding="utf-8") as f:
                f.write(f"{message}\n")

    if not os.path.isdir(log_dir):
        log(f"[LOG ROTATION] Dossier de logs introuvable : {log_dir}")
        return 0

    for filename in os.listdir(log_dir):
        if ".log" not in filename:
            continue
        filepath = os.path.join(log_dir, filename)
        if os.path.isfile(filepath) and os.path.getmtime(filepath) < cutoff:
            try:
                os.remove(filepath)
                removed += 1
                log(f"[LOG ROTATION] Supprimé : {filepath}")
            except OSError as e:
                log(f"[LOG ROTATION] Erreur suppression {filepath} : {e}")
    return removed
