"""
Prompt templates: catalog, rendering and response validation.
"""

from .registry import (
    PromptTemplate,
    TemplateParameter,
    TemplateRegistry,
    decode_response,
    format_directive,
    get_registry,
    get_template,
    render,
    validate,
    validation_errors,
)

__all__ = [
    "PromptTemplate",
    "TemplateParameter",
    "TemplateRegistry",
    "decode_response",
    "format_directive",
    "get_registry",
    "get_template",
    "render",
    "validate",
    "validation_errors",
]
