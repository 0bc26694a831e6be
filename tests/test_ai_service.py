"""
Tests for the driver AI assistant service.
"""

import pytest

from fleetpilot.core.api_manager.manager import HybridAPIManager
from fleetpilot.core.api_manager.types import DiagnosticsResult
from fleetpilot.services.ai_service import (
    DEFAULT_RESPONSE,
    FALLBACK_RESPONSES,
    AIService,
    LoadInfo,
    ResponseSource,
    TruckingContext,
    Urgency,
    determine_urgency,
    generate_recommendations,
)


@pytest.fixture
def manager(mocker):
    manager = mocker.Mock(spec=HybridAPIManager)
    manager.is_degraded_mode.return_value = False
    manager.analyze_diagnostics.return_value = None
    return manager


@pytest.fixture
def service(manager):
    return AIService(api_manager=manager)


class TestGenerateResponse:
    """Tests for generate_response."""

    def test_cloud_response(self, service, manager):
        """Test that a cloud analysis is used when available."""
        # Arrange
        manager.analyze_diagnostics.return_value = DiagnosticsResult(["Misfire", "Low coolant"], 3)

        # Act
        response = service.generate_response("Is my engine ok?", TruckingContext(), [])

        # Assert
        assert response.source == ResponseSource.CLOUD
        assert response.confidence == 0.9
        assert response.degraded is False
        assert "identified 2 potential issues" in response.response
        prompt = manager.analyze_diagnostics.call_args.args[0]
        assert "User: Is my engine ok?" in prompt

    def test_cloud_hours_answer(self, service, manager):
        manager.analyze_diagnostics.return_value = DiagnosticsResult(["None"], 1)

        response = service.generate_response("How many hours left?", TruckingContext(hours_remaining=1.5))

        assert "close to your limit" in response.response
        assert "severity level 1" in response.response

    def test_degraded_mode_uses_rules(self, service, manager):
        """Test that degraded mode skips the cloud entirely."""
        manager.is_degraded_mode.return_value = True

        response = service.generate_response("Any weather warnings?", TruckingContext())

        assert response.source == ResponseSource.FALLBACK
        assert response.confidence == 0.7
        assert response.degraded is True
        assert response.response == FALLBACK_RESPONSES["weather"]
        manager.analyze_diagnostics.assert_not_called()

    def test_cloud_unavailable_falls_back(self, service, manager):
        response = service.generate_response("Where is cheap fuel?", TruckingContext())

        assert response.source == ResponseSource.FALLBACK
        assert response.degraded is False
        assert response.response == FALLBACK_RESPONSES["fuel"]

    def test_default_response_personalized(self, service, manager):
        manager.is_degraded_mode.return_value = True
        context = TruckingContext(current_status="driving", hours_remaining=2, maintenance_alerts=["Brake wear"])

        response = service.generate_response("hello", context)

        assert response.response.startswith(DEFAULT_RESPONSE)
        assert "You are currently driving." in response.response
        assert "limited driving time remaining" in response.response
        assert "1 maintenance alert(s)" in response.response

    def test_context_in_prompt(self, service, manager):
        context = TruckingContext(
            current_status="on_duty",
            hours_remaining=6,
            current_load=LoadInfo("L1", "Dallas", "Denver", 42000),
            weather_conditions="Snow",
        )

        service.generate_response("What now?", context)

        prompt = manager.analyze_diagnostics.call_args.args[0]
        assert "The driver is currently on_duty." in prompt
        assert "42000lbs from Dallas to Denver" in prompt
        assert "Weather conditions: Snow." in prompt


class TestDiagnosticCodes:
    """Tests for analyze_diagnostic_codes."""

    def test_rule_based_critical_code(self, service):
        analysis = service.analyze_diagnostic_codes(["P0001"])

        assert analysis.severity == 4
        assert analysis.urgency == Urgency.CRITICAL
        assert analysis.safety_risk is True
        assert analysis.issues == ["Diagnostic code: P0001"]
        assert analysis.recommendations[0] == "Stop driving immediately - engine issue detected"

    def test_rule_based_minor_code(self, service):
        analysis = service.analyze_diagnostic_codes(["P0420"])

        assert analysis.severity == 2
        assert analysis.urgency == Urgency.MEDIUM
        assert analysis.safety_risk is False
        assert "Stop driving immediately - engine issue detected" not in analysis.recommendations

    def test_cloud_analysis(self, service, manager):
        manager.analyze_diagnostics.return_value = DiagnosticsResult(["Random misfire"], 3)

        analysis = service.analyze_diagnostic_codes(["P0300"])

        manager.analyze_diagnostics.assert_called_once_with("P0300")
        assert analysis.issues == ["Random misfire"]
        assert analysis.urgency == Urgency.HIGH
        assert analysis.safety_risk is True


class TestHelpers:
    """Tests for module level helpers."""

    @pytest.mark.parametrize(
        "severity, expected",
        [(5, Urgency.CRITICAL), (4, Urgency.CRITICAL), (3, Urgency.HIGH), (2, Urgency.MEDIUM), (1, Urgency.LOW)],
    )
    def test_determine_urgency(self, severity, expected):
        assert determine_urgency(severity) == expected

    def test_generate_recommendations(self):
        assert len(generate_recommendations(["B1234"])) == 3
        assert len(generate_recommendations(["P0016"])) == 4


class TestSuggestionsAndVoice:
    """Tests for suggestions, voice commands and status."""

    def test_default_suggestions(self, service):
        assert service.generate_suggestions(TruckingContext()) == [
            "Check my HOS status",
            "Weather conditions ahead",
            "Find fuel stops",
            "Maintenance reminders",
        ]

    def test_suggestions_capped(self, service):
        context = TruckingContext(
            hours_remaining=1,
            weather_conditions="Rain",
            current_load=LoadInfo("L1", "A", "B", 1000),
            maintenance_alerts=["Oil"],
        )

        suggestions = service.generate_suggestions(context)

        assert suggestions == [
            "Find rest areas near me",
            "How much time until mandatory break?",
            "Weather safety tips",
            "Check weather along my route",
        ]

    def test_voice_status_is_local(self, service, manager):
        context = TruckingContext(current_status="driving", hours_remaining=5)

        response = service.process_voice_command("What's my status?", context)

        assert response.source == ResponseSource.LOCAL
        assert response.confidence == 0.95
        assert "You have 5 hours remaining on your HOS." in response.response
        manager.analyze_diagnostics.assert_not_called()

    def test_voice_other_delegates(self, service, manager):
        manager.is_degraded_mode.return_value = True

        response = service.process_voice_command("check load securement", TruckingContext())

        assert response.response == FALLBACK_RESPONSES["load"]

    def test_initialize_model_reports_progress(self, service, manager):
        progress = []

        service.initialize_model(progress.append)
        service.initialize_model(progress.append)

        assert progress == [0.0, 1.0]
        manager.initialize.assert_called_once()

    def test_service_status(self, service, manager):
        manager.is_degraded_mode.return_value = True
        service.initialize_model()

        status = service.get_service_status()

        assert status["ai_available"] is True
        assert status["degraded_mode"] is True
        assert "Rule-based analysis" in status["capabilities"]
