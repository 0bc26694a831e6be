"""
Command line entry point for FleetPilot.

Exposes the hybrid API layer for scripting and diagnostics. Every command
prints JSON on stdout.
"""

import argparse
import json
import sys
from dataclasses import asdict
from enum import Enum
from typing import Any, List, Optional

from loguru import logger

from .core.api_manager import init_api_manager
from .core.logger import setup_logging
from .core.version import get_version
from .services.ai_service import AIService, TruckingContext
from .services.config_service import config_service
from .services.location_service import LocationService


def _to_jsonable(value: Any) -> Any:
    if value is None:
        return None
    if isinstance(value, Enum):
        return value.value
    if hasattr(value, "__dataclass_fields__"):
        return _to_jsonable(asdict(value))
    if isinstance(value, dict):
        return {k: _to_jsonable(v) for k, v in value.items()}
    if isinstance(value, (list, tuple)):
        return [_to_jsonable(v) for v in value]
    return value


def _print(value: Any) -> None:
    print(json.dumps(_to_jsonable(value), indent=2, default=str))


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="fleetpilot", description="FleetPilot hybrid API client")
    parser.add_argument("--version", action="version", version=f"%(prog)s {get_version()}")
    sub = parser.add_subparsers(dest="command", required=True)

    sub.add_parser("location", help="Current location with fallbacks")

    weather = sub.add_parser("weather", help="Current weather at a coordinate")
    weather.add_argument("lat", type=float)
    weather.add_argument("lon", type=float)

    diagnose = sub.add_parser("diagnose", help="Analyze an engine log or trouble codes")
    diagnose.add_argument("text")
    diagnose.add_argument("--codes", action="store_true", help="Treat TEXT as comma-separated trouble codes")

    ask = sub.add_parser("ask", help="Ask the driver assistant")
    ask.add_argument("message")
    ask.add_argument("--status", dest="current_status")
    ask.add_argument("--hours", dest="hours_remaining", type=float)

    sub.add_parser("usage", help="Provider quota usage and recommendations")
    sub.add_parser("status", help="Degraded mode and assistant capabilities")

    reset = sub.add_parser("reset", help="Clear the failure tally of a provider")
    reset.add_argument("name")
    return parser


def run(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    manager = init_api_manager()

    if args.command == "location":
        _print(LocationService(api_manager=manager).get_current_location())
    elif args.command == "weather":
        _print(manager.get_weather_data(args.lat, args.lon))
    elif args.command == "diagnose":
        if args.codes:
            codes = [code.strip().upper() for code in args.text.split(",") if code.strip()]
            _print(AIService(api_manager=manager).analyze_diagnostic_codes(codes))
        else:
            _print(manager.analyze_diagnostics(args.text))
    elif args.command == "ask":
        context = TruckingContext(current_status=args.current_status, hours_remaining=args.hours_remaining)
        _print(AIService(api_manager=manager).generate_response(args.message, context, []))
    elif args.command == "usage":
        _print(manager.get_usage_status())
    elif args.command == "status":
        _print(AIService(api_manager=manager).get_service_status())
    elif args.command == "reset":
        if not manager.usage.has_stats(args.name):
            logger.error(f"Unknown provider '{args.name}'")
            return 1
        manager.reset_failures(args.name)
        _print(manager.usage.get_stats(args.name))
    return 0


def main() -> None:
    """Main application entry point."""
    try:
        setup_logging(config_service)
        sys.exit(run())
    except KeyboardInterrupt:
        logger.info("Interrupted by user")
        sys.exit(130)


if __name__ == "__main__":
    main()
