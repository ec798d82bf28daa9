"""Application layer: tour configuration persistence and bootstrap.

Only the configuration store is re-exported here; the service layer imports
it while initializing, so eager bootstrap imports would be circular. Use
`gui.create_tour` or `gui.app.bootstrap.create_tour`.
"""

from .config_store import (  # noqa: F401
    TourConfig,
    load_config,
    save_config,
    default_state_dir,
    CONFIG_VERSION,
    STATE_DIR_ENV,
)

__all__ = [
    "TourConfig",
    "load_config",
    "save_config",
    "default_state_dir",
    "CONFIG_VERSION",
    "STATE_DIR_ENV",
]
