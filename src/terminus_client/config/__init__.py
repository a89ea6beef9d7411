"""Terminus configuration system."""

from terminus_client.config.loader import find_config_file, load_config
from terminus_client.config.models import ApiConfig, AuthConfig, TerminusConfig, WorkflowPollConfig

__all__ = [
    "ApiConfig",
    "AuthConfig",
    "TerminusConfig",
    "WorkflowPollConfig",
    "load_config",
    "find_config_file",
]
