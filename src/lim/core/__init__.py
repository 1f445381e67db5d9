"""
Core subpackage for the LIM orchestration package.

Contains types, exceptions, settings and logging utilities.
"""

from .types import (
    LLMProvider,
    OutputFormat,
    TemplateType,
    LogLevel,
    LogCategory,
    LogEntry,
    ProviderRequestOptions,
)
from .exceptions import (
    LIMError,
    CredentialMissingError,
    ProviderCallError,
    InvalidResponseError,
    TemplateNotFoundError,
    TemplateRenderError,
    PersistenceError,
    ConfigError,
)
from .config import Settings

__all__ = [
    # Types
    "LLMProvider",
    "OutputFormat",
    "TemplateType",
    "LogLevel",
    "LogCategory",
    "LogEntry",
    "ProviderRequestOptions",
    # Exceptions
    "LIMError",
    "CredentialMissingError",
    "ProviderCallError",
    "InvalidResponseError",
    "TemplateNotFoundError",
    "TemplateRenderError",
    "PersistenceError",
    "ConfigError",
    # Settings
    "Settings",
]
