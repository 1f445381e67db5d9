"""
Custom exceptions for the LIM orchestration package.
"""


class LIMError(Exception):
    """Base exception for all LIM errors."""
    pass


class CredentialMissingError(LIMError):
    """
    Raised when the resolved provider has no configured credential.

    Always raised before any network call is made.
    """

    def __init__(self, message: str, provider: str = None):
        super().__init__(message)
        self.provider = provider


class ProviderCallError(LIMError):
    """
    Error communicating with a text-generation provider.
    
    Raised when:
    - Provider is unreachable
    - Request times out
    - Provider returns an error response
    - Response envelope cannot be decoded
    """
    
    def __init__(self, message: str, provider: str = None, status_code: int = None):
        super().__init__(message)
        self.provider = provider
        self.status_code = status_code


class InvalidResponseError(LIMError):
    """
    Provider call succeeded but the response does not satisfy the
    template's output contract.
    """

    def __init__(self, message: str, provider: str = None, response_preview: str = None,
                 validation_errors: list = None):
        super().__init__(message)
        self.provider = provider
        self.response_preview = response_preview
        self.validation_errors = validation_errors or []


class TemplateNotFoundError(LIMError):
    """Raised when a template type has not been registered."""

    def __init__(self, message: str, template_type: str = None):
        super().__init__(message)
        self.template_type = template_type


class TemplateRenderError(LIMError):
    """Raised by strict rendering when placeholders have no parameter."""

    def __init__(self, message: str, missing: list = None):
        super().__init__(message)
        self.missing = missing or []


class PersistenceError(LIMError):
    """
    Error persisting or retrieving structured records.
    
    Raised when:
    - Cannot write the JSON batch file
    - Relational upsert or replace fails
    - Trending replacement fails
    """
    pass


class ConfigError(LIMError):
    """
    Error in configuration.
    
    Raised when:
    - Configuration file is missing or invalid
    - Configuration values are out of valid range
    """
    pass
