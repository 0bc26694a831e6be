"""
Core components for FleetPilot: configuration, logging, persistence and
the hybrid API manager.
"""
