# Copyright (c) 2025
# MIT License
# -----------------------------------------------------------------------------
# report.py
# -----------------------------------------------------------------------------
# Purpose:
#   Console rendering for the interactive run: starting info, per-round
#   status tables, the next-quickest suggestion, and efficiency answers.
#
# Usage:
#   print(render_status(report))
# -----------------------------------------------------------------------------

from __future__ import annotations
from typing import Optional, Tuple
from tabulate import tabulate
from .metrics import EfficiencyResponse, StatusReport
from .simulation import StartingInfo

def render_starting_info(info: StartingInfo) -> str:
    rows = [(i + 1, name, role, label) for i, (name, role, label) in enumerate(info.stations)]
    lines = [
        "The simulation will begin now, sit tight!",
        f"There are {len(info.stations)} service stations:",
        tabulate(rows, headers=["#", "Station", "Role", "Capacity"], tablefmt="simple"),
        f"Initial Customer Batch: {info.initial_batch}",
        f"Total Customer Waiting Duration: {info.total_waiting_minutes} minutes",
        f"First Customer Arrival Time: {info.first_arrival}",
        f"Average Service Rate: {info.average_service_minutes:g} minutes",
    ]
    return "\n".join(lines)

def render_next_quickest(suggestion: Optional[Tuple[str, float]]) -> str:
    if suggestion is None:
        return "No station is available for new assignment according to the rules."
    name, est = suggestion
    return f"Next quickest service station: {name} (Estimated waiting time: {est:g} minutes)"

def render_efficiency(resp: EfficiencyResponse) -> str:
    if resp.no_selection:
        return "No station has been selected yet."
    return f"Most efficient service station (next quickest frequency): {resp.name} ({resp.count} times)"

def render_status(report: StatusReport) -> str:
    rows = []
    for s in report.stations:
        ids = " ".join(str(i) for i in s.customer_ids) or "-"
        rows.append((s.name, ids, s.display_wait_minutes, s.capacity_label, f"{s.occupancy_pct:.1f}%"))
    table = tabulate(
        rows,
        headers=["Station", "Customers ID", "Waiting (min)", "Capacity", "Occupancy"],
        tablefmt="fancy_grid",
    )
    lines = [
        f"\nCurrent System Status (round {report.round_no}, {report.elapsed_minutes} min elapsed):",
        table,
        f"Total Waiting Customers in System: {report.total_customers}",
        f"Total Waiting Time for the System: {report.total_wait_minutes} minutes",
        f"Unassigned customers this round: {report.unassigned}",
    ]
    return "\n".join(lines)
