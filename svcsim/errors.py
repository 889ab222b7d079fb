# Copyright (c) 2025
# MIT License
# -----------------------------------------------------------------------------
# errors.py
# -----------------------------------------------------------------------------
# Purpose:
#   Exception types raised by the routing engine, the efficiency tracker,
#   the station queues, and the config loader.
#
# Usage:
#   from svcsim.errors import NoStationAvailable, NoSelectionYet
# -----------------------------------------------------------------------------

from __future__ import annotations

class SimulationError(Exception):
    """Base class for every error raised by svcsim."""

class NoStationAvailable(SimulationError):
    """No station can accept one more customer right now.

    Non-fatal: the router catches it and hands the pending customers to the
    fallback cascade, or reports them as unassigned for the next round.
    """

class NoSelectionYet(SimulationError):
    """The efficiency tracker has not recorded any selection yet."""

class CapacityViolation(SimulationError):
    """A bounded station was asked to hold more than its capacity.

    The admission check in the router must prevent this; seeing it means the
    routing logic is broken, so it is never caught inside the package.
    """

class ConfigError(SimulationError):
    """Configuration is missing a required key or holds an invalid value."""
