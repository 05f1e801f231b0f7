"""Config keys used with get_config().

Set via ~/.linqpipe.toml or LINQPIPE_* environment variables.
"""
# Logger configuration consumed by configure_logger()
LOGGER_LEVELS = "logger_levels"
LOGGER_FILES = "logger_files"

ENV_PREFIX = "LINQPIPE_"
DEFAULT_CONFIG_PATH = "~/.linqpipe.toml"
