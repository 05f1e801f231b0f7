from typing import Optional
import logging
import os
import tomllib
from logging.handlers import TimedRotatingFileHandler
from typing import Dict
from pydantic import BaseModel, ConfigDict
from linqpipe.util.constants import (
    DEFAULT_CONFIG_PATH, ENV_PREFIX, LOGGER_FILES, LOGGER_LEVELS
)

logger = logging.getLogger(__name__)

_config = None
_settings = None


class Settings(BaseModel):
    """Validated view of the configuration keys linqpipe itself reads.

    Values coming from environment variables are strings; pydantic coerces
    them ("false", "0", "no" and friends) to the declared types.  Keys that
    linqpipe does not know about are ignored so a shared config file can
    carry settings for other tools.
    """
    model_config = ConfigDict(extra="ignore")

    strict_cursors: bool = True


def parse_key_value_str(field_list: str, require_value: bool = False) -> Dict[str, str]:
    """Parse a property assignment list into a dictionary.

    Args:
        field_list (str): A comma-separated string of key-value pairs in the format "key:value,key:value".
        require_value (bool, optional): If True, raises a ValueError when a key is missing a value.

    Returns:
        Dict[str, str]: A dictionary where keys are property names and values are assigned values.

    Raises:
        ValueError: If require_value is True and a key is missing a value.
    """
    result = {}
    for prop in field_list.split(","):
        key, *value = prop.split(":", 1)
        key = key.strip()
        value = value[0].strip() if len(value) > 0 else None

        if value is None:
            if require_value:
                raise ValueError(f"Value required for property '{key}'")
            value = key.rsplit(".", 1)[-1]

        result[key] = value

    return result


def reset_config():
    """Reset the cached configuration and settings.

    The next call to get_config() or get_settings() reloads from disk and
    environment variables.
    """
    global _config, _settings
    _config = None
    _settings = None


def get_config(reload=False, path=DEFAULT_CONFIG_PATH, ignore_env=False):
    """Get the configuration from the config file and environment variables.

    Args:
        reload (bool, optional): Force reload config from disk. Defaults to False.
        path (str, optional): Path to config file. Defaults to "~/.linqpipe.toml".
        ignore_env (bool, optional): Skip LINQPIPE_* environment variables.

    Returns:
        dict: Configuration dictionary combining file and environment settings.

    Notes:
        - Environment variables prefixed with 'LINQPIPE_' take precedence
        - If the config file doesn't exist, only environment variables are used
        - Configuration is cached after first load unless reload=True
    """
    global _config, _settings
    if _config is None or reload:
        logger.debug("Loading configuration")
        _settings = None
        config_path = os.path.expanduser(path)
        if os.path.exists(config_path):
            logger.info(f"Reading config from {config_path}")
            with open(config_path, 'rb') as f:
                _config = tomllib.load(f)
                logger.debug(f"Loaded config: {_config}")
        else:
            logger.debug(f"Config file {config_path} not found, using empty config")
            _config = {}

        if not ignore_env:
            for env_var in os.environ:
                if env_var.startswith(ENV_PREFIX):
                    config_key = env_var[len(ENV_PREFIX):].lower()
                    _config[config_key] = os.environ[env_var]
                    logger.debug(f"Set {config_key} from environment variable {env_var}")

    return _config


def get_settings(reload=False) -> Settings:
    """Return the validated Settings built from get_config().

    Raises:
        pydantic.ValidationError: If a known key holds a value of the wrong type.
    """
    global _settings
    if _settings is None or reload:
        config = get_config(reload=reload)
        _settings = Settings.model_validate(config)
        logger.debug(f"Using settings: {_settings}")
    return _settings


def strict_cursors() -> bool:
    return get_settings().strict_cursors


def configure_logger(logger_levels: Optional[str] = None, base_level="WARNING", logger_files: Optional[str] = None):
    """Configure logging levels for specified loggers.

    Args:
        logger_levels (str): A string containing logger name and level pairs in the format
            "logger1:LEVEL1,logger2:LEVEL2". Use "root" as logger name for root logger.
        base_level (str, optional): Default logging level. Defaults to "WARNING".
        logger_files (str, optional): A string mapping loggers to file paths in "logger:path" format.

    Examples:
        >>> configure_logger("root:INFO,linqpipe.pipe.core:DEBUG")

    Note:
        Levels and files default to the logger_levels and logger_files config keys.
    """
    if not logger_levels:
        logger_levels = get_config().get(LOGGER_LEVELS, None)

    if not logger_files:
        logger_files = get_config().get(LOGGER_FILES, None)

    logging.basicConfig(level=base_level.upper())

    formatter = logging.Formatter('%(asctime)s - %(levelname)s:%(name)s:%(message)s')

    if logger_levels:
        for logger_name, level in parse_key_value_str(logger_levels, require_value=True).items():
            level = level.upper()
            target = logging.getLogger(logger_name if logger_name != "root" else None)
            target.setLevel(level)

            # Remove existing handlers to prevent duplicate logs
            target.handlers.clear()

            console_handler = logging.StreamHandler()
            console_handler.setLevel(level)
            console_handler.setFormatter(formatter)
            target.addHandler(console_handler)

    if logger_files:
        for logger_name, file_name in parse_key_value_str(logger_files, require_value=True).items():
            target = logging.getLogger(logger_name if logger_name != "root" else None)

            file_handler = TimedRotatingFileHandler(file_name, when='midnight', backupCount=7)
            file_handler.setLevel(target.level)
            file_handler.setFormatter(formatter)
            target.addHandler(file_handler)
