from .config import (
    Config,
    FetchConfig,
    MonitoringConfig,
    ReadabilityOptions,
    ResolvedOptions,
    ScoringConfig,
)

__all__ = [
    "Config",
    "FetchConfig",
    "MonitoringConfig",
    "ReadabilityOptions",
    "ResolvedOptions",
    "ScoringConfig",
]
