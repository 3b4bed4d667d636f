"""gpsync: core subpackage
---------------------------------------------------------
Errors, logging and system configuration shared by every gpsync module.
"""

from .config_loader import load_system_config
from .errors import (
    GPSCommandRejected,
    GPSConfigError,
    GPSDataError,
    GPSError,
    GPSHangTimeout,
    GPSIOError,
    GPSProtocolError,
    GPSProtocolGuardError,
    GPSSpawnError,
    GPSWarning,
    configure_logging,
    get_logger,
)
from .system_config import SystemConfig

__all__ = [
    "SystemConfig",
    "load_system_config",
    "GPSError",
    "GPSConfigError",
    "GPSDataError",
    "GPSSpawnError",
    "GPSIOError",
    "GPSProtocolGuardError",
    "GPSProtocolError",
    "GPSCommandRejected",
    "GPSHangTimeout",
    "GPSWarning",
    "configure_logging",
    "get_logger",
]
