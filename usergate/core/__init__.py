from usergate.core.utils.checks import ifnone
from usergate.core.config import Config, CoreConfig, CoreSettings
from usergate.core.base import UserGate, UserGateMeta
from usergate.core.logging.logger import get_logger, setup_logger

setup_logger()  # Initialize the default logger


__all__ = [
    "Config",
    "CoreConfig",
    "CoreSettings",
    "get_logger",
    "ifnone",
    "setup_logger",
    "UserGate",
    "UserGateMeta",
]
