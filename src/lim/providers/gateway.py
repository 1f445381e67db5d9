"""
Provider Gateway - One call surface over every text-generation provider.

process_template():
1. Merge caller options over process defaults (template tags appended)
2. Resolve the provider (explicit, else Gemini, Anthropic, then enum order)
3. Fail with CredentialMissingError before any network call if the
   provider has no credential
4. Render the user prompt and append the format directive to the system prompt
5. Dispatch exactly one request through the provider's adapter
6. Record one LLM interaction in telemetry, success or failure
7. Fail with InvalidResponseError if the response breaks the output contract

No error is retried here.
"""

import logging
from dataclasses import dataclass, replace
from typing import Any, Callable, Dict, List, Mapping, Optional, Union

from ..core.config import CREDENTIAL_ENV_VARS, Settings
from ..core.exceptions import CredentialMissingError, InvalidResponseError
from ..core.types import (
    AVAILABLE_MODELS,
    DEFAULT_MODELS,
    PROVIDER_PRIORITY,
    LLMProvider,
    OutputFormat,
    ProviderRequestOptions,
    TemplateType,
)
from ..core.utils import truncate
from ..telemetry.sink import TelemetrySink
from ..templates.registry import (
    PromptTemplate,
    decode_response,
    format_directive,
    render,
    validation_errors,
)
from .adapters import create_adapters
from .base import ProviderAdapter, ProviderRequest
from .transport import post_json


logger = logging.getLogger(__name__)

SYSTEM_PREVIEW_LIMIT = 200
USER_PREVIEW_LIMIT = 500

Transport = Callable[[ProviderRequest, str, int], Dict[str, Any]]
RequestOptions = Union[ProviderRequestOptions, Mapping[str, Any], None]


@dataclass
class GenerationResult:
    """
    Result of one template call.

    Attributes:
        content: Response decoded as JSON when possible, else the raw text
        raw_text: Completion text as returned by the provider
        provider: Provider that served the call
        model: Model that served the call
        template_type: Template used
        duration_ms: Wall-clock call duration
        is_valid: Whether the response satisfied the output contract
    """
    content: Any
    raw_text: str
    provider: LLMProvider
    model: str
    template_type: TemplateType
    duration_ms: float
    is_valid: bool = True


class ProviderGateway:
    """
    Dispatches template calls to the configured providers.

    Example:
        >>> settings = Settings.from_env()
        >>> gateway = ProviderGateway(settings, TelemetrySink.from_settings(settings))
        >>> result = gateway.process_template(
        ...     get_template(TemplateType.INTEREST_EXPANSION),
        ...     {"interest": "coffee", "count": 5},
        ...     {"provider": LLMProvider.GEMINI},
        ... )
    """

    def __init__(
        self,
        settings: Settings,
        telemetry: TelemetrySink,
        defaults: Optional[ProviderRequestOptions] = None,
        adapters: Optional[Dict[LLMProvider, ProviderAdapter]] = None,
        transport: Optional[Transport] = None,
        strict_rendering: bool = False,
        strict_validation: bool = False,
    ):
        """
        Initialize the gateway.

        Args:
            settings: Credentials, timeouts and the OpenRouter referer
            telemetry: Sink that receives one interaction record per call
            defaults: Process-wide request defaults
            adapters: Adapter per provider (default: create_adapters())
            transport: Sends a built request and returns the decoded envelope
            strict_rendering: Raise on missing template parameters
            strict_validation: Validate structured responses against the
                template's output schema, not just decodability
        """
        self.settings = settings
        self.telemetry = telemetry
        self.defaults = defaults or ProviderRequestOptions()
        self.adapters = adapters or create_adapters(app_url=settings.app_url)
        self.transport = transport or post_json
        self.strict_rendering = strict_rendering
        self.strict_validation = strict_validation

    def available_providers(self) -> List[LLMProvider]:
        """Providers with a configured credential, in enum order."""
        return [p for p in LLMProvider if self.settings.credential_for(p)]

    def is_provider_available(self, provider: LLMProvider) -> bool:
        return self.settings.credential_for(LLMProvider(provider)) is not None

    def available_models(self, provider: LLMProvider) -> List[str]:
        """Known model names for a provider, default first."""
        provider = LLMProvider(provider)
        models = list(AVAILABLE_MODELS.get(provider, []))
        default = DEFAULT_MODELS[provider]
        return [default] + [m for m in models if m != default]

    def default_provider(self) -> LLMProvider:
        """
        The provider used when a call names none.

        Returns the first credentialed provider in priority order, or
        OPENAI when none is credentialed (the call then fails with
        CredentialMissingError).
        """
        available = self.available_providers()
        for provider in PROVIDER_PRIORITY:
            if provider in available:
                return provider
        if available:
            return available[0]
        return LLMProvider.OPENAI

    def resolve_options(self, template: PromptTemplate,
                        options: RequestOptions = None) -> ProviderRequestOptions:
        """
        Merge options and resolve provider and model.

        Raises:
            CredentialMissingError: If the resolved provider has no credential
        """
        merged = self.defaults.merged(options, extra_tags=list(template.tags))
        provider = merged.provider or self.default_provider()

        if not self.is_provider_available(provider):
            raise CredentialMissingError(
                f"Provider {provider.value} is not available: "
                f"{CREDENTIAL_ENV_VARS[provider]} is not set",
                provider=provider.value,
            )

        return replace(merged, provider=provider, model=merged.model or DEFAULT_MODELS[provider])

    def process_template(
        self,
        template: PromptTemplate,
        params: Optional[Mapping[str, Any]] = None,
        options: RequestOptions = None,
    ) -> GenerationResult:
        """
        Render a template and dispatch it to one provider.

        Raises:
            CredentialMissingError: Resolved provider has no credential
            ProviderCallError: Network, HTTP or envelope failure
            InvalidResponseError: Response fails the output contract
        """
        resolved = self.resolve_options(template, options)
        provider = resolved.provider
        api_key = self.settings.credential_for(provider)

        user_prompt = render(template, params, strict=self.strict_rendering)
        system_prompt = f"{template.system_prompt}\n\n{format_directive(template.output_format)}"

        adapter = self.adapters[provider]
        request = adapter.build_request(
            system_prompt, user_prompt, resolved, api_key, template.output_format
        )

        operation = f"processTemplate:{template.type.value}"
        prompt_preview = {
            "system": truncate(system_prompt, SYSTEM_PREVIEW_LIMIT),
            "user": truncate(user_prompt, USER_PREVIEW_LIMIT),
        }
        interaction = {
            "templateType": template.type.value,
            "templateId": template.id,
            "templateVersion": template.version,
        }
        end_timer = self.telemetry.start_timer(
            template.category, operation, resolved.tags, resolved.user_id
        )

        try:
            envelope = self.transport(request, provider.value, self.settings.request_timeout_seconds)
            raw_text = adapter.parse_response(envelope)
        except Exception as e:
            duration = end_timer({"success": False})
            self.telemetry.error(
                template.category,
                f"Error processing template {template.id} with {provider.value}: {e}",
                {"error": str(e), "errorType": type(e).__name__,
                 "statusCode": getattr(e, "status_code", None), **interaction},
                resolved.tags + ["ERROR", provider.value.upper()],
                resolved.user_id,
            )
            self.telemetry.log_llm_interaction(
                template.category, operation, provider.value, resolved.model,
                prompt_preview, str(e), duration, False,
                resolved.tags, resolved.user_id, {**interaction, "isValid": False},
            )
            raise

        duration = end_timer()
        errors = validation_errors(
            raw_text, template.output_schema, template.output_format, strict=self.strict_validation
        )
        is_valid = not errors

        self.telemetry.log_llm_interaction(
            template.category, operation, provider.value, resolved.model,
            prompt_preview, raw_text, duration, is_valid,
            resolved.tags, resolved.user_id,
            {**interaction, "isValid": is_valid, "validationErrors": errors[:5]},
        )

        if not is_valid:
            raise InvalidResponseError(
                f"Response from {provider.value}/{resolved.model} for {template.id} "
                f"failed validation: {errors[0]}",
                provider=provider.value,
                response_preview=truncate(raw_text, USER_PREVIEW_LIMIT),
                validation_errors=errors,
            )

        return GenerationResult(
            content=self._decode(raw_text),
            raw_text=raw_text,
            provider=provider,
            model=resolved.model,
            template_type=template.type,
            duration_ms=duration,
            is_valid=is_valid,
        )

    @staticmethod
    def _decode(raw_text: str) -> Any:
        """Decode as JSON when possible; otherwise keep the raw text."""
        try:
            return decode_response(raw_text, OutputFormat.JSON)
        except ValueError:
            return raw_text
