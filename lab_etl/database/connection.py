from psycopg_pool import ConnectionPool

from lab_etl.config.settings import Settings


def build_conninfo(settings: Settings) -> str:
    """Build a libpq connection string from settings."""
    return (
        f"host={settings.db_host} "
        f"port={settings.db_port} "
        f"dbname={settings.db_database} "
        f"user={settings.db_username} "
        f"password={settings.db_password} "
        f"sslmode={settings.db_sslmode} "
        f"connect_timeout={settings.db_connect_timeout_seconds} "
        f"options='-c search_path={settings.db_schema_search_path}'"
    )


def create_pool(settings: Settings) -> ConnectionPool:
    """Open the process-wide connection pool.

    The pool is constructed once in the entry point and passed to whatever
    needs a connection; callers own commit/rollback through
    ``conn.transaction()``.
    """
    return ConnectionPool(
        build_conninfo(settings),
        min_size=settings.db_pool_min,
        max_size=settings.db_pool_max,
        open=True,
    )
