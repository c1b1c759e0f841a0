"""
2025-10-02 décorateur de scripts main.
"""

from collections.abc import Callable
from functools import wraps
import sys
import traceback
from typing import Any


def safe_main(func: Callable[..., Any]) -> Callable[..., Any]:
    """
    Décorateur pour main : capture toute exception et convertit le retour en code de sortie.

    Un main qui retourne un entier l'utilise comme code retour (0 sinon).
    """

    @wraps(func)
    def wrapper(*args: Any, **kwargs: Any) -> Any:
        try:
            result = func(*args, **kwargs)
        except Exception as e:
            print(f"❌ Erreur capturée par safe_main: {e}", file=sys.stderr)
            traceback.print_exc(file=sys.stderr)  # log complet pour le cron
            sys.exit(1)
        sys.exit(result if isinstance(result, int) else 0)

    return wrapper
