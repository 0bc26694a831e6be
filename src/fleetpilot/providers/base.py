"""
Shared base for FleetPilot provider adapters.

Every adapter exposes the same surface, ``fetch(capability, params)``, and
either returns a normalized result object or raises ``ProviderError``.
"""

import json
import re
from abc import ABC, abstractmethod
from typing import Any, Dict, Optional, Tuple

import httpx
from loguru import logger

from ..core.api_manager.errors import APIErrorType, ProviderError, classify_error
from ..core.api_manager.types import APIConfig, Capability, DiagnosticsResult
from ..core.logger import redact_secrets

__all__ = [
    "BaseProviderAdapter",
    "build_diagnostics_prompt",
    "parse_diagnostics_text",
]

_FENCE_RE = re.compile(r"^```(?:json)?\s*|\s*```$", re.IGNORECASE)
_OBJECT_RE = re.compile(r"\{.*\}", re.DOTALL)


def build_diagnostics_prompt(log_text: str) -> str:
    """Prompt asking a language model for a JSON issue list."""
    return (
        f"Analyze this truck engine log: {log_text}. "
        'Return JSON format: {"issues": ["issue1", "issue2"], "severity": 1-5}'
    )


def parse_diagnostics_text(text: str) -> DiagnosticsResult:
    """
    Parse a model reply into a DiagnosticsResult.

    The reply may be wrapped in a markdown code fence or surrounded by prose.
    Anything that does not yield an object with an ``issues`` list produces
    the generic "analysis completed" result with severity 2.
    """
    cleaned = _FENCE_RE.sub("", (text or "").strip())
    match = _OBJECT_RE.search(cleaned)
    if not match:
        logger.debug("Diagnostics reply has no JSON object, using generic result")
        return DiagnosticsResult.generic()
    try:
        payload = json.loads(match.group(0))
        issues = payload["issues"]
        if not isinstance(issues, list):
            raise TypeError("issues is not a list")
        severity = int(payload.get("severity", 1))
    except (ValueError, KeyError, TypeError) as e:
        logger.debug(f"Could not parse diagnostics reply ({e}), using generic result")
        return DiagnosticsResult.generic()
    return DiagnosticsResult(issues=[str(issue) for issue in issues], severity=max(1, min(5, severity)))


class BaseProviderAdapter(ABC):
    """
    Base class for HTTP JSON provider adapters.

    Subclasses declare the capabilities they serve and implement ``_fetch``.
    Transport and decoding errors are normalized into ``ProviderError``.
    """

    capabilities: Tuple[Capability, ...] = ()

    def __init__(
        self,
        config: APIConfig,
        timeout: Optional[float] = None,
        transport: Optional[httpx.BaseTransport] = None,
    ):
        """
        Initialize the adapter.

        Args:
            config: Static provider descriptor (base URL, key, limits).
            timeout: Request timeout in seconds (default 30).
            transport: Optional httpx transport, used by tests.
        """
        self._config = config
        self._timeout = timeout or 30
        self._transport = transport

    @property
    def name(self) -> str:
        return self._config.name

    @property
    def config(self) -> APIConfig:
        return self._config

    @property
    def base_url(self) -> str:
        return self._config.base_url.rstrip("/")

    def fetch(self, capability: Capability, params: Optional[Dict[str, Any]] = None) -> Any:
        """
        Serve a capability request.

        Args:
            capability: What is being asked for.
            params: Capability-specific parameters.

        Returns:
            A normalized result object.

        Raises:
            ProviderError: If the provider cannot produce a result.
        """
        if capability not in self.capabilities:
            raise ProviderError(
                f"{self.name} does not serve {capability.value}",
                provider=self.name,
                error_type=APIErrorType.INVALID_REQUEST,
            )
        try:
            return self._fetch(capability, params or {})
        except ProviderError:
            raise
        except (httpx.HTTPError, ValueError) as e:
            api_error = classify_error(e)
            raise ProviderError(
                redact_secrets(str(e)),
                provider=self.name,
                status_code=api_error.status_code,
                error_type=api_error.error_type,
            ) from e
        except (KeyError, IndexError, TypeError, AttributeError) as e:
            # payload did not have the expected shape
            raise self._invalid_response(f"Unexpected {self.name} response: {e!r}") from e

    @abstractmethod
    def _fetch(self, capability: Capability, params: Dict[str, Any]) -> Any:
        ...

    def _client(self) -> httpx.Client:
        return httpx.Client(timeout=self._timeout, transport=self._transport)

    def _get_json(self, url: str, params: Optional[Dict[str, Any]] = None, headers: Optional[Dict[str, str]] = None) -> Any:
        with self._client() as client:
            resp = client.get(url, params=params, headers=headers)
            resp.raise_for_status()
            return resp.json()

    def _post_json(self, url: str, payload: Any, params: Optional[Dict[str, Any]] = None, headers: Optional[Dict[str, str]] = None) -> Any:
        with self._client() as client:
            resp = client.post(url, json=payload, params=params, headers=headers)
            resp.raise_for_status()
            return resp.json()

    def _invalid_response(self, message: str) -> ProviderError:
        return ProviderError(message, provider=self.name, error_type=APIErrorType.INVALID_RESPONSE)
