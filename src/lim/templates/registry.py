"""
Template Registry - Maps template types to prompt templates.

Each PromptTemplate couples system instructions, a user-instruction body with
``{{name}}`` placeholders, a declared output format and an output schema.
Templates are immutable once registered and are looked up by type.

Rendering is permissive by default: a placeholder with no parameter is
replaced with an empty string. Pass ``strict=True`` to have missing
parameters raise TemplateRenderError instead.
"""

import json
import logging
import re
from dataclasses import dataclass, field
from typing import Any, Dict, List, Mapping, Optional, Tuple
from xml.etree import ElementTree

import yaml
from jsonschema import Draft7Validator

from ..core.exceptions import TemplateNotFoundError, TemplateRenderError
from ..core.types import LogCategory, OutputFormat, TemplateType


logger = logging.getLogger(__name__)

PLACEHOLDER_PATTERN = re.compile(r"\{\{([^{}]+)\}\}")
CODE_FENCE_PATTERN = re.compile(r"^```[a-zA-Z]*\s*\n?(.*?)\n?```$", re.DOTALL)

FORMAT_DIRECTIVES: Dict[OutputFormat, str] = {
    OutputFormat.JSON: (
        "IMPORTANT: Your response must be valid JSON without any additional text, "
        "explanations, or markdown formatting. Do not include ```json or ``` markers."
    ),
    OutputFormat.MARKDOWN: "IMPORTANT: Your response must be formatted in Markdown.",
    OutputFormat.CSV: (
        "IMPORTANT: Your response must be in CSV format without any additional text "
        "or explanations."
    ),
    OutputFormat.XML: (
        "IMPORTANT: Your response must be valid XML without any additional text "
        "or explanations."
    ),
    OutputFormat.YAML: (
        "IMPORTANT: Your response must be valid YAML without any additional text "
        "or explanations."
    ),
}


@dataclass(frozen=True)
class TemplateParameter:
    """A declared template parameter."""
    name: str
    description: str
    required: bool = True
    type: str = "string"


@dataclass(frozen=True)
class PromptTemplate:
    """
    Versioned prompt specification.

    Attributes:
        id: Stable identifier (e.g., 'interest-generation-v1')
        type: Semantic template type used for lookup
        version: Semantic version string
        description: What this template generates
        system_prompt: System instructions sent with every request
        user_prompt_template: User instructions with {{name}} placeholders
        output_format: Declared response format
        output_schema: JSON schema describing the expected response
        tags: Tags merged into request options and telemetry
        category: Telemetry category for calls made with this template
        parameters: Declared parameters
        examples: Example (input, output) pairs
    """
    id: str
    type: TemplateType
    version: str
    description: str
    system_prompt: str
    user_prompt_template: str
    output_format: OutputFormat
    output_schema: Dict[str, Any] = field(default_factory=dict)
    tags: Tuple[str, ...] = ()
    category: LogCategory = LogCategory.LLM
    parameters: Tuple[TemplateParameter, ...] = ()
    examples: Tuple[Tuple[Dict[str, Any], Any], ...] = ()

    def placeholders(self) -> List[str]:
        """Return placeholder names in order of first appearance."""
        names = []
        for match in PLACEHOLDER_PATTERN.finditer(self.user_prompt_template):
            name = match.group(1).strip()
            if name not in names:
                names.append(name)
        return names


class TemplateRegistry:
    """
    Registry of prompt templates keyed by TemplateType.

    Built-in templates are loaded lazily on first lookup. Registered
    templates cannot be replaced.
    """

    def __init__(self, load_builtins: bool = True):
        """
        Initialize the registry.

        Args:
            load_builtins: Whether to load the built-in catalog on first use
        """
        self._templates: Dict[TemplateType, PromptTemplate] = {}
        self._loaded = not load_builtins

    def register(self, template: PromptTemplate) -> None:
        """
        Register a template.

        Raises:
            ValueError: If a template of the same type is already registered
        """
        existing = self._templates.get(template.type)
        if existing is not None:
            raise ValueError(
                f"Template type {template.type.value} already registered as {existing.id}"
            )
        self._templates[template.type] = template
        logger.debug(f"Registered template: {template.id} ({template.type.value})")

    def get(self, template_type: TemplateType) -> PromptTemplate:
        """
        Get a template by type.

        Raises:
            TemplateNotFoundError: If the type is not registered
        """
        if not self._loaded:
            self._load_builtins()

        template = self._templates.get(template_type)
        if template is None:
            type_name = getattr(template_type, "value", template_type)
            raise TemplateNotFoundError(
                f"Template not found for type: {type_name}",
                template_type=str(type_name),
            )
        return template

    def list_types(self) -> List[TemplateType]:
        """List all registered template types."""
        if not self._loaded:
            self._load_builtins()
        return list(self._templates.keys())

    def __contains__(self, template_type: TemplateType) -> bool:
        if not self._loaded:
            self._load_builtins()
        return template_type in self._templates

    def _load_builtins(self) -> None:
        """Load the built-in template catalog."""
        if self._loaded:
            return
        self._loaded = True

        from .definitions import builtin_templates
        for template in builtin_templates():
            self.register(template)

        logger.debug(f"Loaded {len(self._templates)} built-in templates")


# Process-wide catalog; templates are immutable so sharing is safe
_registry: Optional[TemplateRegistry] = None


def get_registry() -> TemplateRegistry:
    """Get the default template registry."""
    global _registry
    if _registry is None:
        _registry = TemplateRegistry()
    return _registry


def get_template(template_type: TemplateType) -> PromptTemplate:
    """Get a template from the default registry."""
    return get_registry().get(template_type)


def _stringify(value: Any) -> str:
    if value is None:
        return ""
    if isinstance(value, str):
        return value
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, (list, tuple)):
        return ", ".join(_stringify(v) for v in value)
    if isinstance(value, dict):
        return json.dumps(value, default=str)
    return str(value)


def render(template: PromptTemplate, params: Optional[Mapping[str, Any]] = None,
           strict: bool = False) -> str:
    """
    Render the user instructions of a template.

    Every ``{{name}}`` placeholder is replaced with the string form of
    ``params[name]``. Missing (or None) parameters become empty strings
    unless ``strict`` is set.

    Raises:
        TemplateRenderError: In strict mode, when any placeholder has no value
    """
    params = params or {}

    if strict:
        missing = [name for name in template.placeholders() if params.get(name) is None]
        if missing:
            raise TemplateRenderError(
                f"Missing parameters for template {template.id}: {', '.join(missing)}",
                missing=missing,
            )

    def substitute(match: "re.Match") -> str:
        return _stringify(params.get(match.group(1).strip()))

    return PLACEHOLDER_PATTERN.sub(substitute, template.user_prompt_template)


def format_directive(output_format: OutputFormat) -> str:
    """Return the instruction appended to system text for a format."""
    return FORMAT_DIRECTIVES[OutputFormat(output_format)]


def strip_code_fences(text: str) -> str:
    """Remove a surrounding ```lang ... ``` fence, if present."""
    stripped = text.strip()
    match = CODE_FENCE_PATTERN.match(stripped)
    return match.group(1).strip() if match else stripped


def decode_response(response: Any, output_format: OutputFormat = OutputFormat.JSON) -> Any:
    """
    Decode a response according to its declared format.

    Already-decoded values pass through unchanged. Text formats
    (Markdown, CSV) decode to their stripped text, or None when empty.

    Raises:
        ValueError: If the response does not decode in the given format
    """
    if not isinstance(response, str):
        return response

    output_format = OutputFormat(output_format)
    text = strip_code_fences(response)

    if output_format == OutputFormat.JSON:
        try:
            return json.loads(text)
        except json.JSONDecodeError as e:
            raise ValueError(f"Response is not valid JSON: {e}")

    if output_format == OutputFormat.YAML:
        try:
            return yaml.safe_load(text)
        except yaml.YAMLError as e:
            raise ValueError(f"Response is not valid YAML: {e}")

    if output_format == OutputFormat.XML:
        if not text:
            return None
        try:
            return ElementTree.fromstring(text)
        except ElementTree.ParseError as e:
            raise ValueError(f"Response is not valid XML: {e}")

    return text or None


def validation_errors(
    response: Any,
    schema: Optional[Dict[str, Any]] = None,
    output_format: OutputFormat = OutputFormat.JSON,
    strict: bool = False,
) -> List[str]:
    """
    Check a response against a template's output contract.

    The default check only requires that the response decodes in its
    declared format and is non-null. With ``strict`` set, structured
    responses (JSON, YAML) are also validated against ``schema``.

    Returns:
        List of validation errors (empty if valid)
    """
    try:
        decoded = decode_response(response, output_format)
    except ValueError as e:
        return [str(e)]

    if decoded is None:
        return ["Response is empty"]

    if strict and schema and OutputFormat(output_format) in (OutputFormat.JSON, OutputFormat.YAML):
        validator = Draft7Validator(schema)
        return [
            f"{'/'.join(str(p) for p in error.path) or '<root>'}: {error.message}"
            for error in validator.iter_errors(decoded)
        ]

    return []


def validate(
    response: Any,
    schema: Optional[Dict[str, Any]] = None,
    output_format: OutputFormat = OutputFormat.JSON,
    strict: bool = False,
) -> bool:
    """Return True if the response satisfies the output contract."""
    errors = validation_errors(response, schema, output_format, strict)
    if errors:
        logger.debug(f"Response failed validation: {errors[:3]}")
    return not errors
