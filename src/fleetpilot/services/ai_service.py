"""
AI assistant service for FleetPilot.

Answers driver questions and analyzes diagnostic trouble codes. Cloud
analysis goes through the hybrid API manager; when the manager reports
degraded mode or every provider fails, answers come from local rules.
"""

import threading
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Callable, Dict, List, Optional

from loguru import logger

from ..core.api_manager import HybridAPIManager, get_api_manager
from ..core.api_manager.types import DiagnosticsResult

CRITICAL_CODES = ("P0001", "P0002", "P0003", "P0016", "P0017")
SAFETY_CODES = CRITICAL_CODES + ("P0300",)
ENGINE_CODE_PREFIX = "P00"
LOW_HOURS_THRESHOLD = 3
MAX_SUGGESTIONS = 4

FALLBACK_RESPONSES: Dict[str, str] = {
    "hours": "Please check your ELD device for current Hours of Service status. Ensure you comply with DOT regulations.",
    "weather": "Check local weather conditions and road reports. Drive safely in adverse conditions.",
    "maintenance": "Refer to your maintenance schedule and address any warning lights immediately.",
    "fuel": "Plan fuel stops based on your route and tank capacity. Use truck stop apps for current prices.",
    "safety": "If this is an emergency, call 911. For non-emergency safety concerns, contact your dispatcher.",
    "load": "Verify load securement and weight distribution. Check your bills of lading for delivery requirements.",
}

DEFAULT_RESPONSE = (
    "I'm here to help with trucking questions. I can assist with Hours of Service, "
    "weather, maintenance, and safety concerns."
)


class ResponseSource(str, Enum):
    LOCAL = "local"
    CLOUD = "cloud"
    FALLBACK = "fallback"


class Urgency(str, Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    CRITICAL = "critical"


@dataclass
class LoadInfo:
    id: str
    pickup: str
    delivery: str
    weight: float


@dataclass
class TruckingContext:
    """What the assistant knows about the driver right now."""

    current_location: Optional[str] = None
    current_status: Optional[str] = None  # driving, on_duty, off_duty, sleeper
    hours_remaining: Optional[float] = None
    next_deadline: Optional[datetime] = None
    current_load: Optional[LoadInfo] = None
    weather_conditions: Optional[str] = None
    fuel_level: Optional[float] = None
    maintenance_alerts: List[str] = field(default_factory=list)


@dataclass
class AIResponse:
    response: str
    confidence: float
    source: ResponseSource
    degraded: bool


@dataclass
class DiagnosticAnalysis:
    issues: List[str]
    severity: int
    recommendations: List[str]
    urgency: Urgency
    safety_risk: bool
    estimated_cost: Optional[float] = None


def determine_urgency(severity: int) -> Urgency:
    if severity >= 4:
        return Urgency.CRITICAL
    if severity >= 3:
        return Urgency.HIGH
    if severity >= 2:
        return Urgency.MEDIUM
    return Urgency.LOW


def assess_safety_risk(codes: List[str]) -> bool:
    return any(code in SAFETY_CODES for code in codes)


def generate_recommendations(codes: List[str]) -> List[str]:
    recommendations = [
        "Contact your maintenance department",
        "Schedule service appointment",
        "Monitor vehicle performance closely",
    ]
    if any(code.startswith(ENGINE_CODE_PREFIX) for code in codes):
        recommendations.insert(0, "Stop driving immediately - engine issue detected")
    return recommendations


def hos_advice(hours_remaining: float) -> str:
    if hours_remaining <= 2:
        return "You're getting close to your limit. Find a safe place to take your required break soon."
    if hours_remaining <= 4:
        return "You have some time left, but start planning for your next break."
    return "You have plenty of driving time remaining."


class AIService:
    """
    Driver assistant with cloud-first, rule-based fallback answers.
    """

    def __init__(self, api_manager: Optional[HybridAPIManager] = None):
        """
        Initialize the AIService.

        Args:
            api_manager: Manager used for cloud analysis. Defaults to the
                         process-wide instance.
        """
        self._api_manager = api_manager
        self._is_initialized = False
        self._lock = threading.RLock()

    @property
    def api_manager(self) -> HybridAPIManager:
        if self._api_manager is None:
            self._api_manager = get_api_manager()
        return self._api_manager

    def initialize_model(self, on_progress: Optional[Callable[[float], None]] = None) -> None:
        """
        Prepare the service for use.

        Args:
            on_progress: Optional callback receiving progress in [0, 1].
        """
        with self._lock:
            if self._is_initialized:
                return
            if on_progress:
                on_progress(0.0)
            self.api_manager.initialize()
            self._is_initialized = True
            if on_progress:
                on_progress(1.0)
            logger.info("AI service initialized")

    def generate_response(
        self,
        message: str,
        context: TruckingContext,
        conversation_history: Optional[List[Dict[str, str]]] = None,
    ) -> AIResponse:
        """
        Answer a driver message.

        Cloud analysis is attempted unless the API manager is degraded;
        otherwise, or when the cloud gives nothing, a rule-based answer is
        returned.
        """
        if not self._is_initialized:
            self.initialize_model()

        is_degraded = self.api_manager.is_degraded_mode()

        if not is_degraded:
            cloud_response = self._get_cloud_response(message, context)
            if cloud_response:
                return AIResponse(cloud_response, 0.9, ResponseSource.CLOUD, False)

        return AIResponse(
            self._generate_fallback_response(message, context),
            0.7,
            ResponseSource.FALLBACK,
            is_degraded,
        )

    def _get_cloud_response(self, message: str, context: TruckingContext) -> Optional[str]:
        prompt = f"{self._build_context_prompt(context)}\n\nUser: {message}\n\nAssistant:"
        analysis = self.api_manager.analyze_diagnostics(prompt)
        if analysis is None:
            logger.debug("Cloud analysis unavailable, falling back to local rules")
            return None
        return self._format_ai_response(message, context, analysis)

    def _format_ai_response(self, message: str, context: TruckingContext, analysis: DiagnosticsResult) -> str:
        lower_message = message.lower()

        if "diagnostic" in lower_message or "engine" in lower_message:
            return (
                f"Based on the diagnostic analysis, I've identified {len(analysis.issues)} potential issues. "
                f"{self._engine_advice(context)}"
            )

        if "hours" in lower_message or "hos" in lower_message:
            hours = context.hours_remaining if context.hours_remaining is not None else 8
            return f"{hos_advice(hours)} Current analysis shows severity level {analysis.severity}."

        return self._generate_fallback_response(message, context)

    def _generate_fallback_response(self, message: str, context: TruckingContext) -> str:
        lower_message = message.lower()
        for keyword, response in FALLBACK_RESPONSES.items():
            if keyword in lower_message:
                return self._personalize(response, context)
        return self._personalize(DEFAULT_RESPONSE, context)

    def _personalize(self, response: str, context: TruckingContext) -> str:
        if context.current_status:
            response += f" You are currently {context.current_status}."
        if context.hours_remaining is not None and context.hours_remaining <= LOW_HOURS_THRESHOLD:
            response += " Note: You have limited driving time remaining."
        if context.maintenance_alerts:
            response += f" You have {len(context.maintenance_alerts)} maintenance alert(s) that need attention."
        return response

    def _build_context_prompt(self, context: TruckingContext) -> str:
        prompt = "You are an AI assistant specialized in trucking and logistics. "
        if context.current_status:
            prompt += f"The driver is currently {context.current_status}. "
        if context.hours_remaining is not None:
            prompt += f"They have {context.hours_remaining} hours remaining on their HOS. "
        if context.current_load:
            load = context.current_load
            prompt += f"Current load: {load.weight}lbs from {load.pickup} to {load.delivery}. "
        if context.weather_conditions:
            prompt += f"Weather conditions: {context.weather_conditions}. "
        if context.maintenance_alerts:
            prompt += f"Maintenance alerts: {', '.join(context.maintenance_alerts)}. "
        return prompt

    @staticmethod
    def _engine_advice(context: TruckingContext) -> str:
        if context.maintenance_alerts:
            return "Address maintenance alerts promptly to avoid breakdowns."
        return "Regular maintenance helps prevent costly repairs."

    def analyze_diagnostic_codes(self, codes: List[str]) -> DiagnosticAnalysis:
        """
        Analyze diagnostic trouble codes.

        Args:
            codes: OBD-II style codes, e.g. ["P0300"].

        Returns:
            Cloud analysis when available, otherwise the rule-based result.
        """
        analysis = self.api_manager.analyze_diagnostics(", ".join(codes))
        if analysis is not None:
            severity = analysis.severity or 1
            return DiagnosticAnalysis(
                issues=list(analysis.issues),
                severity=severity,
                recommendations=generate_recommendations(codes),
                urgency=determine_urgency(severity),
                safety_risk=assess_safety_risk(codes),
            )
        return self._fallback_diagnostic_analysis(codes)

    @staticmethod
    def _fallback_diagnostic_analysis(codes: List[str]) -> DiagnosticAnalysis:
        has_critical = any(code in CRITICAL_CODES for code in codes)
        return DiagnosticAnalysis(
            issues=[f"Diagnostic code: {code}" for code in codes],
            severity=4 if has_critical else 2,
            recommendations=generate_recommendations(codes),
            urgency=Urgency.CRITICAL if has_critical else Urgency.MEDIUM,
            safety_risk=has_critical,
        )

    def generate_suggestions(self, context: TruckingContext) -> List[str]:
        """Suggested follow-up questions for the current context."""
        suggestions: List[str] = []

        if context.hours_remaining is not None and context.hours_remaining <= LOW_HOURS_THRESHOLD:
            suggestions += ["Find rest areas near me", "How much time until mandatory break?"]
        if context.weather_conditions:
            suggestions += ["Weather safety tips", "Check weather along my route"]
        if context.current_load:
            suggestions += ["Load delivery requirements", "Best route to destination"]
        if context.maintenance_alerts:
            suggestions += ["Nearest service centers", "Maintenance priority levels"]

        if not suggestions:
            suggestions = [
                "Check my HOS status",
                "Weather conditions ahead",
                "Find fuel stops",
                "Maintenance reminders",
            ]
        return suggestions[:MAX_SUGGESTIONS]

    def process_voice_command(self, transcript: str, context: TruckingContext) -> AIResponse:
        """Answer status queries locally; delegate everything else to generate_response."""
        lower_transcript = transcript.lower()

        if "status" in lower_transcript or "how am i doing" in lower_transcript:
            status = "Here's your current status: "
            if context.current_status:
                status += f"You are currently {context.current_status}. "
            if context.hours_remaining is not None:
                status += f"You have {context.hours_remaining} hours remaining on your HOS. "
            if context.current_load:
                status += f"Your load is {context.current_load.weight}lbs going to {context.current_load.delivery}. "
            return AIResponse(status, 0.95, ResponseSource.LOCAL, False)

        return self.generate_response(transcript, context, [])

    def get_service_status(self) -> Dict[str, object]:
        is_degraded = self.api_manager.is_degraded_mode()
        return {
            "ai_available": self._is_initialized,
            "degraded_mode": is_degraded,
            "last_update": datetime.now().isoformat(),
            "capabilities": (
                ["Basic responses", "Rule-based analysis", "Cached suggestions"]
                if is_degraded
                else ["Advanced AI responses", "Real-time analysis", "Context awareness", "Voice processing"]
            ),
        }


__all__ = [
    "AIService",
    "AIResponse",
    "DiagnosticAnalysis",
    "LoadInfo",
    "ResponseSource",
    "TruckingContext",
    "Urgency",
    "determine_urgency",
    "generate_recommendations",
]
