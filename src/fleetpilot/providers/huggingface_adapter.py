"""
HuggingFace Inference API adapter for FleetPilot.

Runs a text-generation model over the engine log and parses the JSON issue
list from the generated text.
"""

from typing import Any, Dict, Optional

import httpx

from ..core.api_manager.errors import APIErrorType, ProviderError
from ..core.api_manager.types import APIConfig, Capability, DiagnosticsResult
from .base import BaseProviderAdapter, build_diagnostics_prompt, parse_diagnostics_text

__all__ = ["HuggingFaceAdapter"]


class HuggingFaceAdapter(BaseProviderAdapter):
    """Adapter for the HuggingFace hosted inference endpoint."""

    capabilities = (Capability.DIAGNOSTICS,)

    def __init__(
        self,
        config: APIConfig,
        timeout: Optional[float] = None,
        transport: Optional[httpx.BaseTransport] = None,
        model: str = "mistralai/Mistral-7B-Instruct-v0.2",
    ):
        super().__init__(config, timeout=timeout, transport=transport)
        self._model = model

    def _fetch(self, capability: Capability, params: Dict[str, Any]) -> DiagnosticsResult:
        payload = {
            "inputs": build_diagnostics_prompt(params["log_text"]),
            "parameters": {"max_new_tokens": 256, "return_full_text": False},
        }
        data = self._post_json(
            f"{self.base_url}/models/{self._model}",
            payload,
            headers={"Authorization": f"Bearer {self.config.api_key}"},
        )

        if isinstance(data, dict) and data.get("error"):
            # model cold start is reported as an error with an estimated_time
            error_type = APIErrorType.SERVER_ERROR if "estimated_time" in data else APIErrorType.INVALID_REQUEST
            raise ProviderError(str(data["error"]), provider=self.name, error_type=error_type)

        if not isinstance(data, list) or not data:
            raise self._invalid_response("HuggingFace response has no generations")

        return parse_diagnostics_text(data[0].get("generated_text", ""))
