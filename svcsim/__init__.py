"""
svcsim package initializer.

This package contains the round-based driver, station primitives
(queues/processors), routing logic, policies, and metric collection used by
the multi-station customer service simulation.
"""
__all__ = [
    "entities", "arrivals", "errors", "queues", "stations", "policies",
    "network", "metrics", "simulation", "config", "report",
]
