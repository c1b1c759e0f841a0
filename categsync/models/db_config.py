from typing import TypedDict

from pymysql.cursors import Cursor, DictCursor

from categsync.utils.config import DB_HOST, DB_PORT, get_required


class DBConfig(TypedDict, total=False):
    host: str
    user: str
    password: str
    database: str
    port: int
    charset: str
    cursorclass: type[Cursor]


def get_db_config() -> DBConfig:
    """
    Config pymysql ; les identifiants ne sont exigés qu'à l'ouverture d'une connexion.
    """
    return {
        "host": DB_HOST,
        "user": get_required("DB_USER"),
        "password": get_required("DB_PASSWORD"),
        "database": get_required("DB_NAME"),
        "port": DB_PORT,
        "charset": "utf8mb4",
        "cursorclass": DictCursor,
    }
