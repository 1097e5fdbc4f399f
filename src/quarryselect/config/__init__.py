from .config import Config, ExtractionSettings, FieldSelector, LoggingConfig, configure, load_config, read_yaml

__all__ = [
    "Config",
    "ExtractionSettings",
    "FieldSelector",
    "LoggingConfig",
    "configure",
    "load_config",
    "read_yaml",
]
