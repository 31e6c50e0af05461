"""Core infrastructure: config, errors, logging, events, diagnostics."""

from nodemanifest.core.config import ConfigResolver, LoggingPolicy
from nodemanifest.core.errors import (
    ConfigError,
    ManifestBatchError,
    ManifestRequestError,
    ManifestWriteError,
    NodeManifestError,
    UnknownFoundPageByError,
)
from nodemanifest.core.events import EventBus, get_event_bus
from nodemanifest.core.logging import (
    VerbosityLevel,
    apply_logging_policy,
    get_logger,
    get_verbosity,
    set_colors,
    set_verbosity,
)

__all__ = [
    # Config
    "ConfigResolver",
    "LoggingPolicy",
    # Errors
    "NodeManifestError",
    "ConfigError",
    "ManifestRequestError",
    "UnknownFoundPageByError",
    "ManifestWriteError",
    "ManifestBatchError",
    # Events
    "EventBus",
    "get_event_bus",
    # Logging
    "VerbosityLevel",
    "apply_logging_policy",
    "get_logger",
    "get_verbosity",
    "set_colors",
    "set_verbosity",
]
