"""Configuration handling for the feed ingestor."""

import logging
import os
from dataclasses import dataclass, field, fields
from typing import Any, Dict, List, Optional, Union, get_args, get_origin

import yaml
from dotenv import load_dotenv
from sqlalchemy.engine import URL

from feed_ingestor.errors import ConfigError

logger = logging.getLogger(__name__)

DEFAULT_REPOSITORIES: List[Dict[str, str]] = [
    {"owner": "golang", "name": "go"},
    {"owner": "prometheus", "name": "prometheus"},
    {"owner": "SeleniumHQ", "name": "selenium"},
    {"owner": "openai", "name": "openai-openapi"},
    {"owner": "docker", "name": "docker-py"},
    {"owner": "milvus-io", "name": "milvus"},
]

DEFAULT_TECHNOLOGIES: List[str] = ["Prometheus", "Selenium", "OpenAI", "Docker", "Milvus", "Go"]


@dataclass
class RepositoryTarget:
    """A GitHub repository whose issues are ingested."""

    owner: str
    name: str


@dataclass
class GitHubConfig:
    """GitHub issue API settings."""

    api_url: str = "https://api.github.com"
    per_page: int = 30
    state: str = "open"


@dataclass
class StackExchangeConfig:
    """Stack Exchange question API settings."""

    api_url: str = "https://api.stackexchange.com/2.3"
    site: str = "stackoverflow"
    window_sec: int = 3600
    filter: Optional[str] = None


@dataclass
class MonitoringConfig:
    """Monitoring configuration."""

    enable_prometheus: bool = True
    prometheus_port: int = 2112


@dataclass
class ServerConfig:
    """Placeholder HTTP service configuration."""

    enabled: bool = True
    host: str = "0.0.0.0"
    port: int = 8080


@dataclass
class PostgresConfig:
    """PostgreSQL connection configuration."""

    host: str = "localhost"
    port: int = 5432
    database: str = "githubDB"
    questions_database: Optional[str] = None
    user: str = "postgres"
    password: str = ""

    @property
    def issues_url(self) -> URL:
        """SQLAlchemy URL of the database holding ``github_issues``."""
        return self._url(self.database)

    @property
    def questions_url(self) -> URL:
        """SQLAlchemy URL of the database holding ``so_posts``."""
        return self._url(self.questions_database or self.database)

    def _url(self, database: str) -> URL:
        return URL.create(
            "postgresql+psycopg2",
            username=self.user,
            password=self.password or None,
            host=self.host,
            port=self.port,
            database=database,
        )


@dataclass
class Config:
    """Application configuration combining environment variables and YAML config."""

    # Credentials from environment
    github_token: str = ""
    stackexchange_key: str = ""

    # YAML config values with defaults
    repositories: List[RepositoryTarget] = field(
        default_factory=lambda: [RepositoryTarget(**r) for r in DEFAULT_REPOSITORIES]
    )
    technologies: List[str] = field(default_factory=lambda: list(DEFAULT_TECHNOLOGIES))
    request_timeout_sec: Optional[float] = None
    github: GitHubConfig = field(default_factory=GitHubConfig)
    stackexchange: StackExchangeConfig = field(default_factory=StackExchangeConfig)
    monitoring: MonitoringConfig = field(default_factory=MonitoringConfig)
    server: ServerConfig = field(default_factory=ServerConfig)
    postgres: PostgresConfig = field(default_factory=PostgresConfig)

    @classmethod
    def from_files(cls, config_path: str, env_path: Optional[str] = None) -> "Config":
        """
        Load configuration from a YAML file and environment variables.

        JSON is a subset of YAML, so a JSON config file is accepted as well.

        Args:
            config_path: Path to YAML configuration file (missing file means defaults)
            env_path: Optional path to .env file (defaults to .env in current directory)

        Returns:
            Config instance with merged configuration

        Raises:
            ConfigError: If the file cannot be read or parsed
        """
        if env_path:
            load_dotenv(env_path)
        else:
            load_dotenv()

        config = cls()
        config.github_token = os.getenv("GITHUB_TOKEN", "")
        config.stackexchange_key = os.getenv("STACKEXCHANGE_KEY", "")
        try:
            pg_port = int(os.getenv("PG_PORT", "5432"))
        except ValueError as e:
            raise ConfigError(f"PG_PORT must be an integer: {e}") from e
        config.postgres = PostgresConfig(
            host=os.getenv("PG_HOST", "localhost"),
            port=pg_port,
            database=os.getenv("PG_DB", "githubDB"),
            questions_database=os.getenv("PG_QUESTIONS_DB") or None,
            user=os.getenv("PG_USER", "postgres"),
            password=os.getenv("PG_PASSWORD", ""),
        )

        if os.path.exists(config_path):
            try:
                with open(config_path, "r", encoding="utf-8") as file:
                    yaml_config = yaml.safe_load(file)
            except (OSError, yaml.YAMLError) as e:
                raise ConfigError(f"Error reading config file {config_path}: {e}") from e

            if yaml_config is not None:
                if not isinstance(yaml_config, dict):
                    raise ConfigError(f"Config file {config_path} must contain a mapping at top level")
                config._merge(yaml_config)
        else:
            logger.warning(f"Config file {config_path} not found, using default targets")

        # Listener ports from the environment take precedence over the file
        try:
            if os.getenv("PORT"):
                config.server.port = int(os.environ["PORT"])
            if os.getenv("METRICS_PORT"):
                config.monitoring.prometheus_port = int(os.environ["METRICS_PORT"])
        except ValueError as e:
            raise ConfigError(f"Invalid port in environment: {e}") from e

        return config

    def _merge(self, yaml_config: Dict[str, Any]) -> None:
        """Apply values from a parsed config document on top of the current ones."""
        if "github_token" in yaml_config:
            # Environment is the only credential source.
            logger.warning("Ignoring github_token in config file; set GITHUB_TOKEN in the environment instead")

        if "repositories" in yaml_config:
            self.repositories = _parse_repositories(yaml_config["repositories"])

        if "technologies" in yaml_config:
            technologies = yaml_config["technologies"]
            if not isinstance(technologies, list):
                raise ConfigError("technologies must be a list of tags")
            self.technologies = [str(t) for t in technologies]

        if "request_timeout_sec" in yaml_config:
            self.request_timeout_sec = _coerce(
                "request_timeout_sec", yaml_config["request_timeout_sec"], Optional[float]
            )

        nested = {
            "github": self.github,
            "stackexchange": self.stackexchange,
            "monitoring": self.monitoring,
            "server": self.server,
            "postgres": self.postgres,
        }
        for section, target in nested.items():
            values = yaml_config.get(section)
            if values is None:
                continue
            if not isinstance(values, dict):
                raise ConfigError(f"{section} must be a mapping")
            if section == "postgres" and "dbname" in values and "database" not in values:
                values["database"] = values["dbname"]
            field_types = {f.name: f.type for f in fields(target)}
            for key, value in values.items():
                if key not in field_types:
                    if not (section == "postgres" and key == "dbname"):
                        logger.warning(f"Ignoring unknown config key {section}.{key}")
                    continue
                setattr(target, key, _coerce(f"{section}.{key}", value, field_types[key]))

    def validate(self) -> List[str]:
        """
        Validate configuration and return a list of validation errors.

        Returns:
            List of validation error messages (empty if valid)
        """
        errors = []

        if not self.github_token:
            errors.append("Missing GITHUB_TOKEN in environment")

        if not self.repositories and not self.technologies:
            errors.append("No repositories or technologies specified in configuration")

        if self.github.per_page <= 0 or self.github.per_page > 100:
            errors.append("github.per_page must be between 1 and 100")

        if self.stackexchange.window_sec <= 0:
            errors.append("stackexchange.window_sec must be greater than 0")

        if self.request_timeout_sec is not None and self.request_timeout_sec <= 0:
            errors.append("request_timeout_sec must be greater than 0 when set")

        if not self.postgres.host:
            errors.append("PG_HOST must be specified")
        if self.postgres.port <= 0:
            errors.append("PG_PORT must be a positive integer")
        if not self.postgres.database:
            errors.append("PG_DB must be specified")
        if not self.postgres.user:
            errors.append("PG_USER must be specified")

        return errors


def _coerce(name: str, value: Any, expected: Any) -> Any:
    """
    Convert a config value to the declared field type.

    Numeric strings are accepted for int and float fields, and numbers for
    str fields. Booleans only match bool fields.

    Raises:
        ConfigError: If the value cannot be converted
    """
    if get_origin(expected) is Union:
        if value is None:
            return None
        expected = next(t for t in get_args(expected) if t is not type(None))

    if expected is bool:
        if isinstance(value, bool):
            return value
    elif expected is int:
        if isinstance(value, int) and not isinstance(value, bool):
            return value
        if isinstance(value, str):
            try:
                return int(value.strip())
            except ValueError:
                pass
    elif expected is float:
        if isinstance(value, (int, float, str)) and not isinstance(value, bool):
            try:
                return float(value)
            except ValueError:
                pass
    elif expected is str:
        if isinstance(value, (str, int, float)) and not isinstance(value, bool):
            return str(value)
    else:
        return value

    raise ConfigError(f"{name} must be of type {expected.__name__}, got {value!r}")


def _parse_repositories(raw: Any) -> List[RepositoryTarget]:
    """Accept either a list of ``{owner, name}`` mappings or an ``owner: name`` mapping."""
    if isinstance(raw, dict):
        return [RepositoryTarget(owner=str(owner), name=str(name)) for owner, name in raw.items()]
    if not isinstance(raw, list):
        raise ConfigError("repositories must be a list of {owner, name} entries")

    targets = []
    for entry in raw:
        if not isinstance(entry, dict) or "owner" not in entry or "name" not in entry:
            raise ConfigError(f"Invalid repository entry: {entry!r}")
        targets.append(RepositoryTarget(owner=str(entry["owner"]), name=str(entry["name"])))
    return targets
