"""
Configuration for Stargazer.

Settings are layered, later layers winning: built-in defaults, the YAML
config file, environment variables (a .env file is loaded into the
environment first) and command line flags.
"""

import logging
import os
from dataclasses import asdict, dataclass, field, fields
from typing import Mapping, Optional

import yaml

from infrastructure.renderer import AVAILABLE_FORMATS, RenderOptions

logger = logging.getLogger(__name__)

DEFAULT_CONFIG_FILE = "stargazer.yml"

# Environment variable -> Config field
ENV_VARS = {
    "GITHUB_USER": "github_user",
    "GITHUB_TOKEN": "github_token",
    "OUTPUT_FILE": "output_file",
    "OUTPUT_FORMAT": "output_format",
    "IGNORE_REPOS": "ignore_repos",
    "WITH_TOC": "with_toc",
    "WITH_STARS": "with_stars",
    "WITH_LICENSE": "with_license",
    "WITH_BACK_TO_TOP": "with_back_to_top",
    "RATE_LIMIT": "rate_limit",
    "STARGAZER_TIMEOUT": "timeout",
}

TRUE_VALUES = {"1", "true", "yes", "on"}
FALSE_VALUES = {"0", "false", "no", "off"}


class ConfigError(Exception):
    """Raised for unreadable or invalid configuration."""


@dataclass
class Config:
    """Application configuration settings."""
    github_user: str = ""
    github_token: str = ""
    output_file: str = "README.md"
    output_format: str = "list"
    ignore_repos: list[str] = field(default_factory=list)
    with_toc: bool = True
    with_stars: bool = True
    with_license: bool = True
    with_back_to_top: bool = False
    test: bool = False
    rate_limit: int = 5
    timeout: int = 180
    rate_limit_file: str = "rate_limit_info.json"

    def update(self, values: Mapping[str, object]):
        """Set fields from a mapping, converting values to the field types."""
        known = {f.name: f for f in fields(self)}
        for key, value in values.items():
            if key not in known:
                logger.warning(f"Ignoring unknown config key '{key}'")
                continue
            if value is None:
                continue
            setattr(self, key, _convert(key, known[key].type, value))

    def validate(self):
        """
        Check that the configuration can be used to generate a list.

        Raises:
            ConfigError: Describing the first problem found
        """
        if not self.test:
            if not self.github_token:
                raise ConfigError("GitHub token is required. Please provide a valid token.")
            if not self.github_user:
                raise ConfigError("GitHub user is required.")
        if self.output_format not in AVAILABLE_FORMATS:
            raise ConfigError(
                f"Unknown output format '{self.output_format}'. "
                f"Available formats: {', '.join(AVAILABLE_FORMATS)}"
            )
        if self.rate_limit <= 0:
            raise ConfigError("rate_limit must be a positive number of requests per second")
        if self.timeout <= 0:
            raise ConfigError("timeout must be a positive number of seconds")

    def render_options(self) -> RenderOptions:
        return RenderOptions(
            output_format=self.output_format,
            with_toc=self.with_toc,
            with_license=self.with_license,
            with_stars=self.with_stars,
            with_back_to_top=self.with_back_to_top,
        )

    def save(self, filename: str, include_token: bool = False):
        """
        Write the configuration to a YAML file.

        Args:
            filename: Path of the config file
            include_token: Also write the GitHub token

        Raises:
            ConfigError: If the file can't be written
        """
        data = asdict(self)
        if not include_token:
            data.pop("github_token")
        try:
            with open(filename, "w", encoding="utf-8") as f:
                yaml.safe_dump(data, f, default_flow_style=False, sort_keys=False)
        except OSError as e:
            raise ConfigError(f"error writing config file: {e}") from e


def load_config(filename: str = DEFAULT_CONFIG_FILE) -> Config:
    """
    Load the configuration from a YAML file.

    If the file doesn't exist, the default configuration is returned.

    Raises:
        ConfigError: If the file exists but can't be read or parsed
    """
    config = Config()

    if not os.path.exists(filename):
        logger.info(f"Config file {filename} not found. Using default configuration.")
        return config

    try:
        with open(filename, "r", encoding="utf-8") as f:
            data = yaml.safe_load(f)
    except OSError as e:
        raise ConfigError(f"error reading config file: {e}") from e
    except yaml.YAMLError as e:
        raise ConfigError(f"error parsing config file: {e}") from e

    if data is None:
        return config
    if not isinstance(data, dict):
        raise ConfigError(f"error parsing config file: {filename} must contain a mapping")

    config.update(data)
    logger.info(f"Using config file: {filename}")
    return config


def apply_env(config: Config, environ: Optional[Mapping[str, str]] = None) -> Config:
    """
    Override config values with the environment variables in ENV_VARS.
    Empty variables are ignored.
    """
    environ = os.environ if environ is None else environ
    values = {
        name: environ[var]
        for var, name in ENV_VARS.items()
        if environ.get(var)
    }
    config.update(values)
    return config


def _convert(key: str, type_, value):
    if type_ in (bool, "bool"):
        return _to_bool(key, value)
    if type_ in (int, "int"):
        try:
            return int(value)
        except (TypeError, ValueError):
            raise ConfigError(f"{key} must be an integer, got {value!r}")
    if key == "ignore_repos":
        if isinstance(value, str):
            return [name.strip() for name in value.split(",") if name.strip()]
        if isinstance(value, (list, tuple)):
            return [str(name) for name in value]
        raise ConfigError(f"{key} must be a list of repository names")
    return str(value)


def _to_bool(key: str, value) -> bool:
    if isinstance(value, bool):
        return value
    text = str(value).strip().lower()
    if text in TRUE_VALUES:
        return True
    if text in FALSE_VALUES:
        return False
    raise ConfigError(f"{key} must be a boolean, got {value!r}")
