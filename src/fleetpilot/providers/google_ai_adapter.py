"""
Google Generative AI (Gemini) adapter for FleetPilot.

Sends the engine log to ``generateContent`` and parses the JSON issue list
from the first candidate.
"""

from typing import Any, Dict, Optional

import httpx

from ..core.api_manager.types import APIConfig, Capability, DiagnosticsResult
from .base import BaseProviderAdapter, build_diagnostics_prompt, parse_diagnostics_text

__all__ = ["GoogleAIAdapter"]


class GoogleAIAdapter(BaseProviderAdapter):
    """Adapter for the Gemini REST API."""

    capabilities = (Capability.DIAGNOSTICS,)

    def __init__(
        self,
        config: APIConfig,
        timeout: Optional[float] = None,
        transport: Optional[httpx.BaseTransport] = None,
        model: str = "gemini-2.0-flash",
    ):
        super().__init__(config, timeout=timeout, transport=transport)
        self._model = model

    def _fetch(self, capability: Capability, params: Dict[str, Any]) -> DiagnosticsResult:
        payload = {"contents": [{"parts": [{"text": build_diagnostics_prompt(params["log_text"])}]}]}
        data = self._post_json(
            f"{self.base_url}/v1beta/models/{self._model}:generateContent",
            payload,
            params={"key": self.config.api_key},
        )

        candidates = data.get("candidates") or []
        if not candidates:
            raise self._invalid_response("Gemini response has no candidates")

        parts = (candidates[0].get("content") or {}).get("parts") or []
        text = "".join(part.get("text", "") for part in parts)
        return parse_diagnostics_text(text)
