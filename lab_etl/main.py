import sys
from typing import Any

import click
from psycopg_pool import ConnectionPool

from lab_etl.audit.reporter import AuditReporter
from lab_etl.config.settings import Settings
from lab_etl.database.connection import create_pool
from lab_etl.logging.logger import Log
from lab_etl.pipeline.engine import PipelineEngine
from lab_etl.pipeline.file_processor import FileProcessor
from lab_etl.pipeline.registry import ENTITY_NAMES, ORDERS, build_registry
from lab_etl.storage.s3_gateway import S3Gateway, build_s3_client
from lab_etl.worker.runner import PipelineRunner

ALL_TARGET = "all"


def build_runner(settings: Settings, pool: ConnectionPool, s3_client: Any) -> PipelineRunner:
    """Wire the runner from one pool and one S3 client."""
    registry = build_registry(settings)
    gateway = S3Gateway(s3_client, settings.s3_bucket)
    engine = PipelineEngine(pool, batch_size=settings.batch_size)
    reporter = AuditReporter(gateway, settings.log_dir)
    processor = FileProcessor(gateway, engine, reporter)
    return PipelineRunner(registry, gateway, processor)


def dispatch(runner: PipelineRunner, target: str | None) -> None:
    """No target or 'all' -> every entity; an entity name -> that entity;
    anything else -> a single orders file of that name."""
    if target is None or target == ALL_TARGET:
        runner.run_all()
    elif target in ENTITY_NAMES:
        runner.run_entity(target)
    else:
        runner.run_file(ORDERS, target)


def main(target: str | None = None) -> int:
    """Entry point: settings -> logging -> pool + S3 client -> runner -> dispatch."""
    settings = Settings()
    Log.configure(settings.log_level, settings.log_dir)
    pool: ConnectionPool | None = None
    try:
        pool = create_pool(settings)
        runner = build_runner(settings, pool, build_s3_client(settings))
        dispatch(runner, target)
    except KeyboardInterrupt:
        Log.info("Shutting down gracefully")
        return 1
    except Exception as exc:
        Log.error(f"Fatal error: {exc}")
        return 1
    finally:
        if pool is not None:
            pool.close()
            Log.info("Database pool closed")
    return 0


@click.command()
@click.argument("target", required=False)
def cli(target: str | None) -> None:
    """Load CSV drops from S3 into PostgreSQL.

    TARGET is 'all' (default), one of: orders, products, practices, mappings,
    practice-mappings, dental-groups, or the name of a single orders file.
    """
    sys.exit(main(target))


if __name__ == "__main__":
    cli()
