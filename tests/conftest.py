"""
Pytest configuration for FleetPilot test suite.

This file provides common fixtures for all tests.
"""

import logging
from typing import Any, Dict, List, Optional

import pytest
from loguru import logger

from fleetpilot.core.api_manager.errors import ProviderError
from fleetpilot.core.api_manager.manager import HybridAPIManager
from fleetpilot.core.api_manager.providers import DEFAULT_PROVIDERS
from fleetpilot.core.api_manager.types import Capability
from fleetpilot.core.config import Settings
from fleetpilot.core.storage import MemoryStore
from fleetpilot.services.config_service import ConfigService


@pytest.fixture
def loguru_caplog(caplog):
    """Fixture to bridge loguru to pytest caplog with proper cleanup."""
    logger.remove()

    handler_id = logger.add(caplog.handler, format="{message}")
    caplog.set_level(logging.DEBUG)

    yield caplog

    try:
        logger.remove(handler_id)
    except ValueError:
        # Handler already removed
        pass


# ============================================================================
# Settings & Config Fixtures
# ============================================================================

TEST_KEYS = {
    "ipapi_api_key": "test-ipapi",
    "openweather_api_key": "test-owm",
    "google_ai_api_key": "test-google",
    "geotab_api_key": "test-geotab-session",
    "weatherstack_api_key": "test-weatherstack",
    "huggingface_api_key": "test-hf",
}


@pytest.fixture
def settings():
    """Settings with every provider key set, isolated from the environment's .env."""
    return Settings(_env_file=None, **TEST_KEYS)


@pytest.fixture
def config_service(settings):
    """Config service wrapping the test settings."""
    return ConfigService(settings)


@pytest.fixture
def store():
    """In-memory key-value store."""
    return MemoryStore()


# ============================================================================
# Fake provider adapters
# ============================================================================

class FakeAdapter:
    """
    Stand-in for a provider adapter.

    Each call pops the next outcome: an exception instance is raised,
    anything else is returned. The last outcome repeats once the list is
    exhausted.
    """

    def __init__(self, name: str, capabilities, outcomes: Optional[List[Any]] = None):
        self.name = name
        self.capabilities = tuple(capabilities)
        self.outcomes = list(outcomes or [ProviderError(f"{name} not stubbed", provider=name)])
        self.calls: List[Dict[str, Any]] = []

    def fetch(self, capability: Capability, params: Optional[Dict[str, Any]] = None) -> Any:
        self.calls.append({"capability": capability, "params": dict(params or {})})
        outcome = self.outcomes.pop(0) if len(self.outcomes) > 1 else self.outcomes[0]
        if isinstance(outcome, Exception):
            raise outcome
        return outcome

    @property
    def call_count(self) -> int:
        return len(self.calls)


@pytest.fixture
def fake_adapters():
    """One failing FakeAdapter per default provider, keyed by provider name."""
    return {spec.name: FakeAdapter(spec.name, spec.used_for) for spec in DEFAULT_PROVIDERS}


@pytest.fixture
def api_manager(config_service, store, fake_adapters):
    """Initialized HybridAPIManager wired to fake adapters and an in-memory store."""
    manager = HybridAPIManager(config_service, store=store)
    for name, adapter in fake_adapters.items():
        manager.providers.register(name, adapter)
    manager.initialize()
    yield manager
    manager.shutdown()


@pytest.fixture
def make_adapter():
    """Factory for standalone FakeAdapter instances."""
    return FakeAdapter


@pytest.fixture
def provider_keys():
    return dict(TEST_KEYS)
