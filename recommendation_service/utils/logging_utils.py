import logging
import logging.config
from pathlib import Path
from typing import Union

import yaml

from ..config.settings import settings

DEFAULT_LOGGING_CONFIG_PATH = Path(settings.LOGGING_CONFIG_PATH)
PACKAGE_LOGGER_NAME = "recommendation_service"


def setup_logging(config_path: Union[str, Path] = DEFAULT_LOGGING_CONFIG_PATH) -> None:
    """
    Configure logging for the service from a YAML ``dictConfig`` file.

    Called once from the application lifespan. A missing or unusable file falls
    back to ``logging.basicConfig`` at INFO. With ``DEBUG`` on, the package
    logger is lowered to DEBUG so prompt and reply previews are emitted.

    Args:
        config_path: Path to the logging configuration YAML file.
    """
    config_path = Path(config_path)
    if not config_path.exists():
        logging.basicConfig(level=logging.INFO)
        logging.warning(f"Logging configuration file not found at {config_path}. Using basicConfig.")
    else:
        try:
            with open(config_path, 'rt') as f:
                logging.config.dictConfig(yaml.safe_load(f))
            logging.getLogger(PACKAGE_LOGGER_NAME).info(f"Logging configured from {config_path}")
        except (OSError, ValueError, TypeError, AttributeError, ImportError, yaml.YAMLError) as e:
            logging.basicConfig(level=logging.INFO)
            logging.error(f"Could not apply logging configuration from {config_path}: {e}. Using basicConfig.")

    if settings.DEBUG:
        logging.getLogger(PACKAGE_LOGGER_NAME).setLevel(logging.DEBUG)
