"""Post-processor configuration loading and validation."""

from grbl_laser_post.configs.loader import (
    ArcsConfig,
    ConfigError,
    FeedsConfig,
    FinishPositionConfig,
    LaserConfig,
    PostConfig,
    config_from_dict,
    load_config,
)

__all__ = [
    "ArcsConfig",
    "ConfigError",
    "FeedsConfig",
    "FinishPositionConfig",
    "LaserConfig",
    "PostConfig",
    "config_from_dict",
    "load_config",
]
