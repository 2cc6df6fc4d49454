import logging
import os
from dataclasses import dataclass, field, replace

import yaml
from marshmallow import RAISE, Schema, ValidationError, fields

logger = logging.getLogger(__name__)

DEFAULT_SITE = "./www"
NOT_FOUND_NAME = "not_found.html"

DEFAULT_NOT_FOUND_PAGE = """<!DOCTYPE html>
<html>
    <head>
        <title>Not found</title>
    </head>
    <body>
        Oops! That page wasn't found on this server.
    </body>
</html>
"""


class ConfigError(Exception):
    """Raised when the site configuration cannot be loaded or prepared."""


@dataclass(frozen=True)
class Config:
    host: str = "0.0.0.0"
    port: int = 8080
    workers: int = 4
    queue_size: int = 1000
    backlog: int = 128
    recv_timeout: float = 2.0
    accept_timeout: float = 1.0
    max_header_bytes: int = 65536


@dataclass(frozen=True)
class SiteConfig:
    site: str = DEFAULT_SITE
    not_found_file: str = ""
    # False when not_found_file was derived from site rather than given.
    not_found_declared: bool = field(default=False, init=False, compare=False, repr=False)

    def __post_init__(self) -> None:
        object.__setattr__(self, "not_found_declared", bool(self.not_found_file))
        if not self.not_found_file:
            object.__setattr__(self, "not_found_file", default_not_found_file(self.site))

    def with_site(self, site: str) -> "SiteConfig":
        if self.not_found_declared:
            return replace(self, site=site)
        return SiteConfig(site=site)


class _SiteConfigSchema(Schema):
    class Meta:
        unknown = RAISE

    site = fields.String(load_default=DEFAULT_SITE)
    not_found_file = fields.String(load_default=None)


_SITE_CONFIG_SCHEMA = _SiteConfigSchema()


def default_not_found_file(site: str) -> str:
    return site.rstrip("/\\") + "/" + NOT_FOUND_NAME


def load_site_config(config_path: str) -> SiteConfig:
    """
    Load the site configuration from a YAML file.

    A missing file is not an error: the defaults are returned and written
    back to ``config_path`` so the operator can edit them. Anything else
    that prevents reading or validating the file raises ConfigError.
    """
    logger.debug("Reading config file at '%s'...", config_path)
    try:
        with open(config_path, "r", encoding="utf-8") as f:
            raw = f.read()
    except FileNotFoundError:
        logger.info("No config file found at '%s'; generating default...", config_path)
        site_config = SiteConfig()
        _write_default(config_path, site_config)
        return site_config
    except OSError as e:
        raise ConfigError(f"Failed to open config file '{config_path}'") from e

    try:
        document = yaml.safe_load(raw)
    except yaml.YAMLError as e:
        raise ConfigError(f"Failed to parse config file '{config_path}'") from e

    if document is None:
        document = {}
    if not isinstance(document, dict):
        raise ConfigError(f"Config file '{config_path}' must contain a mapping")

    try:
        values = _SITE_CONFIG_SCHEMA.load(document)
    except ValidationError as e:
        raise ConfigError(f"Invalid config file '{config_path}': {e.messages}") from e

    return SiteConfig(site=values["site"], not_found_file=values["not_found_file"] or "")


def dump_site_config(site_config: SiteConfig) -> str:
    return yaml.safe_dump(
        {"site": site_config.site, "not_found_file": site_config.not_found_file},
        default_flow_style=False,
        sort_keys=False,
    )


def _write_default(config_path: str, site_config: SiteConfig) -> None:
    try:
        with open(config_path, "w", encoding="utf-8") as f:
            f.write(dump_site_config(site_config))
    except OSError as e:
        logger.warning("Failed to write default config file '%s': %s (continuing with defaults)", config_path, e)


def prepare_site(site_config: SiteConfig) -> SiteConfig:
    """Create the site directory if needed and canonicalize its paths."""
    site = site_config.site
    if not os.path.exists(site):
        logger.warning("Site directory '%s' does not exist; creating it...", site)
        try:
            os.makedirs(site, exist_ok=True)
        except OSError as e:
            raise ConfigError(f"Failed to create site directory '{site}'") from e
    elif not os.path.isdir(site):
        raise ConfigError(f"Site path '{site}' is not a directory")

    prepared = SiteConfig(
        site=os.path.realpath(site),
        not_found_file=os.path.abspath(site_config.not_found_file),
    )

    if not os.path.exists(prepared.not_found_file):
        logger.warning("Not found file '%s' does not exist; creating it...", prepared.not_found_file)
        try:
            with open(prepared.not_found_file, "w", encoding="utf-8") as f:
                f.write(DEFAULT_NOT_FOUND_PAGE)
        except OSError as e:
            logger.warning("Failed to create not found file '%s': %s", prepared.not_found_file, e)

    return prepared
