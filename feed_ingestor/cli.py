"""Command-line interface for the feed ingestor."""

import logging
import logging.config
import sys
import time
from pathlib import Path
from typing import Optional, Tuple

import typer
from sqlalchemy.engine import Engine
from typing_extensions import Annotated

from feed_ingestor.api.app import start_api_server
from feed_ingestor.clients.github_client import GitHubClient
from feed_ingestor.clients.stackexchange_client import StackExchangeClient
from feed_ingestor.collector.fetchers import IssueFetcher, QuestionFetcher
from feed_ingestor.collector.runner import IngestionRunner
from feed_ingestor.config import Config
from feed_ingestor.errors import ConfigError, StorageError
from feed_ingestor.models.tables import GithubIssueORM, SOPostORM
from feed_ingestor.monitoring.metrics import PrometheusExporter
from feed_ingestor.storage.database import create_db_engine
from feed_ingestor.storage.postgres_sink import PostgresSink

app = typer.Typer(help="Feed Ingestor - Collect GitHub issues and Stack Overflow questions into PostgreSQL")

logger = logging.getLogger(__name__)

ConfigOption = Annotated[str, typer.Option("--config", "-c", help="Path to configuration file")]
LogLevelOption = Annotated[str, typer.Option("--loglevel", "-l", help="Logging level")]
VerboseOption = Annotated[bool, typer.Option("--verbose", "-v", help="Enable verbose output")]


def setup_logging(log_level: str = "INFO") -> None:
    """
    Set up logging configuration.

    Args:
        log_level: Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
    """
    log_dir = Path("logs")
    log_dir.mkdir(exist_ok=True)

    log_config = {
        "version": 1,
        "disable_existing_loggers": False,
        "formatters": {
            "standard": {
                "format": "%(asctime)s [%(levelname)s] %(name)s: %(message)s"
            },
        },
        "handlers": {
            "console": {
                "class": "logging.StreamHandler",
                "level": log_level,
                "formatter": "standard",
                "stream": "ext://sys.stdout",
            },
            "file": {
                "class": "logging.handlers.RotatingFileHandler",
                "level": log_level,
                "formatter": "standard",
                "filename": "logs/ingestor.log",
                "maxBytes": 10485760,  # 10 MB
                "backupCount": 5,
                "encoding": "utf8",
            },
        },
        "loggers": {
            "": {
                "handlers": ["console", "file"],
                "level": log_level,
                "propagate": True
            },
            "urllib3": {
                "level": "WARNING",
            },
            "uvicorn": {
                "level": "WARNING",
            },
        }
    }

    logging.config.dictConfig(log_config)


def load_config(config_path: str) -> Config:
    """
    Load and validate configuration, exiting on any problem.

    Configuration problems are reported before anything touches the network
    or the database.
    """
    try:
        config = Config.from_files(config_path)
    except ConfigError as e:
        logger.error(f"Error reading config file: {e}")
        sys.exit(1)

    validation_errors = config.validate()
    if validation_errors:
        for error in validation_errors:
            logger.error(f"Configuration error: {error}")
        logger.critical("Invalid configuration, aborting")
        sys.exit(1)
    return config


def connect_databases(config: Config) -> Tuple[Engine, Engine]:
    """
    Create engines for the issue and question databases.

    Exits the process if either database cannot be reached.
    """
    try:
        issues_url = config.postgres.issues_url
        questions_url = config.postgres.questions_url
        issues_engine = create_db_engine(issues_url)
        if questions_url.render_as_string(hide_password=False) == issues_url.render_as_string(hide_password=False):
            questions_engine = issues_engine
        else:
            questions_engine = create_db_engine(questions_url)
    except StorageError as e:
        logger.critical(str(e))
        sys.exit(1)
    return issues_engine, questions_engine


def build_runner(
    config: Config,
    sink: PostgresSink,
    prometheus_exporter: Optional[PrometheusExporter],
) -> IngestionRunner:
    """Wire clients, fetchers and the sink into an IngestionRunner."""
    github_client = GitHubClient(
        config.github_token,
        settings=config.github,
        timeout=config.request_timeout_sec,
    )
    stackexchange_client = StackExchangeClient(
        settings=config.stackexchange,
        key=config.stackexchange_key,
        timeout=config.request_timeout_sec,
    )
    return IngestionRunner(
        issue_fetcher=IssueFetcher(github_client, prometheus_exporter),
        question_fetcher=QuestionFetcher(
            stackexchange_client,
            prometheus_exporter,
            window_sec=config.stackexchange.window_sec,
        ),
        sink=sink,
        repositories=config.repositories,
        technologies=config.technologies,
    )


def wait_forever() -> None:
    """Keep background servers alive until interrupted."""
    logger.info("Press Ctrl+C to stop the server")
    try:
        while True:
            time.sleep(60)
    except KeyboardInterrupt:
        logger.info("Server stopped")


@app.command()
def run(
    config: ConfigOption = "config.yaml",
    serve: Annotated[bool, typer.Option("--serve/--no-serve", help="Keep serving metrics after the run")] = True,
    loglevel: LogLevelOption = "INFO",
    verbose: VerboseOption = False,
) -> None:
    """
    Run one ingestion cycle.

    Both tables are dropped and recreated, then every configured repository
    and technology tag is fetched and stored. Any failure aborts the run.
    """
    setup_logging("DEBUG" if verbose else loglevel)
    config_obj = load_config(config)

    prometheus_exporter = None
    if config_obj.monitoring.enable_prometheus:
        prometheus_exporter = PrometheusExporter(port=config_obj.monitoring.prometheus_port)
        prometheus_exporter.start_server()

    if config_obj.server.enabled:
        start_api_server(config_obj.server.host, config_obj.server.port)

    issues_engine, questions_engine = connect_databases(config_obj)
    sink = PostgresSink(issues_engine, questions_engine, prometheus_exporter)
    runner = build_runner(config_obj, sink, prometheus_exporter)

    try:
        runner.run()
    except KeyboardInterrupt:
        logger.info("Interrupted by user")
        sys.exit(1)
    except Exception as e:
        logger.critical(f"Ingestion run aborted: {e}", exc_info=True)
        sys.exit(1)
    finally:
        runner.issue_fetcher.client.close()
        runner.question_fetcher.client.close()
        issues_engine.dispose()
        questions_engine.dispose()

    if serve and (prometheus_exporter or config_obj.server.enabled):
        wait_forever()


@app.command("reset-tables")
def reset_tables(
    config: ConfigOption = "config.yaml",
    loglevel: LogLevelOption = "INFO",
) -> None:
    """Drop and recreate the github_issues and so_posts tables."""
    setup_logging(loglevel)
    config_obj = load_config(config)
    issues_engine, questions_engine = connect_databases(config_obj)
    sink = PostgresSink(issues_engine, questions_engine)
    try:
        sink.reset_issue_table()
        sink.reset_question_table()
    except StorageError as e:
        logger.critical(str(e))
        sys.exit(1)
    typer.echo("Tables github_issues and so_posts recreated")


@app.command()
def tables(
    config: ConfigOption = "config.yaml",
    loglevel: LogLevelOption = "WARNING",
) -> None:
    """Print the number of rows in each destination table."""
    setup_logging(loglevel)
    config_obj = load_config(config)
    issues_engine, questions_engine = connect_databases(config_obj)
    sink = PostgresSink(issues_engine, questions_engine)
    try:
        for orm in (GithubIssueORM, SOPostORM):
            typer.echo(f"{orm.__tablename__}: {sink.count_rows(orm)}")
    except StorageError as e:
        logger.critical(str(e))
        sys.exit(1)


@app.command()
def serve(
    config: ConfigOption = "config.yaml",
    loglevel: LogLevelOption = "INFO",
) -> None:
    """Run only the placeholder API and the metrics endpoint."""
    setup_logging(loglevel)
    config_obj = load_config(config)

    if not config_obj.monitoring.enable_prometheus and not config_obj.server.enabled:
        logger.warning("Both the metrics endpoint and the API server are disabled, nothing to serve")
        return

    if config_obj.monitoring.enable_prometheus:
        PrometheusExporter(port=config_obj.monitoring.prometheus_port).start_server()
    if config_obj.server.enabled:
        start_api_server(config_obj.server.host, config_obj.server.port)
    wait_forever()


def main() -> None:
    """Entry point for the CLI."""
    app()


if __name__ == "__main__":
    main()
