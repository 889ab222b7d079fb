# Copyright (c) 2025
# MIT License
# -----------------------------------------------------------------------------
# queues.py
# -----------------------------------------------------------------------------
# Purpose:
#   Service primitives: a Station holding a thread-safe FIFO queue with an
#   occupancy counter, and a StationProcessor thread that drains it one
#   customer at a time.
#
# Design notes:
#   - Each Station owns one threading.Condition; the router (producer) and
#     the station's processor (consumer) both go through it. No cross-station
#     locking exists.
#   - Processors park on the condition when the queue is empty and are woken
#     by enqueue() or by stop(); there is no sleep-poll loop.
#   - A dequeue happens entirely inside the lock, so a customer is either
#     still queued or fully removed, never half-processed.
#
# Usage:
#   from svcsim.queues import Station, StationProcessor
# -----------------------------------------------------------------------------

from __future__ import annotations
import logging, threading
from collections import deque
from typing import TYPE_CHECKING, Callable, Deque, List, Optional, Tuple
from .entities import Customer
from .errors import CapacityViolation

if TYPE_CHECKING:
    from .stations import StationPolicy, StationRole

log = logging.getLogger(__name__)

class Station:
    """FIFO service station with a capacity rule taken from its policy.

    Parameters
    ----------
    name : str
        Station name for reports and the efficiency tracker.
    policy : StationPolicy
        Role, capacity, and waiting-time rules.
    """
    def __init__(self, name: str, policy: "StationPolicy"):
        self.name = name
        self.policy = policy
        self._queue: Deque[Customer] = deque()
        self._cond = threading.Condition()
        self.occupancy: int = 0          # mirrors len(queue) at every release of the lock

    def __repr__(self):
        return f"Station({self.name!r}, {self.policy.role.name}, size={len(self)})"

    def __len__(self) -> int:
        with self._cond:
            return len(self._queue)

    @property
    def role(self) -> "StationRole":
        return self.policy.role

    @property
    def capacity(self) -> Optional[int]:
        return self.policy.capacity

    # Admission checks; the router calls these before enqueue()
    def admits(self) -> bool:
        with self._cond:
            return self.policy.admits(len(self._queue))

    def has_room(self) -> bool:
        with self._cond:
            return self.policy.has_room(len(self._queue))

    def enqueue(self, customer: Customer):
        with self._cond:
            if not self.policy.has_room(len(self._queue)):
                raise CapacityViolation(
                    f"{self.name} is full ({self.capacity}); refusing customer {customer.cid}"
                )
            self._queue.append(customer)
            self.occupancy += 1
            self._check()
            self._cond.notify()

    def serve_one(self) -> Optional[Customer]:
        """Pop the front customer without blocking; None when empty."""
        with self._cond:
            return self._pop()

    def take(self, stop: threading.Event, timeout: Optional[float] = None) -> Optional[Customer]:
        """
        Block until a customer is queued or `stop` is set, then pop one.

        Returns None when stopped or when `timeout` elapses with nothing queued.
        """
        with self._cond:
            if not self._queue and not stop.is_set():
                self._cond.wait(timeout)
            if stop.is_set():
                return None
            return self._pop()

    def wake(self):
        with self._cond:
            self._cond.notify_all()

    def counts(self) -> Tuple[int, int]:
        """(occupancy, queue length) read under one lock acquisition."""
        with self._cond:
            return self.occupancy, len(self._queue)

    def snapshot(self) -> List[Customer]:
        with self._cond:
            return list(self._queue)

    def customer_ids(self) -> List[int]:
        return [c.cid for c in self.snapshot()]

    def total_service_minutes(self) -> int:
        return sum(c.service_minutes for c in self.snapshot())

    def display_wait(self) -> int:
        return self.policy.display_wait(c.service_minutes for c in self.snapshot())

    def _pop(self) -> Optional[Customer]:
        if not self._queue:
            return None
        cust = self._queue.popleft()
        self.occupancy = max(0, self.occupancy - 1)
        self._check()
        return cust

    def _check(self):
        if __debug__:
            assert self.occupancy == len(self._queue), (
                f"{self.name}: occupancy {self.occupancy} != queue length {len(self._queue)}"
            )
            if self.capacity is not None and len(self._queue) > self.capacity:
                raise CapacityViolation(f"{self.name} holds {len(self._queue)} > {self.capacity}")

class StationProcessor(threading.Thread):
    """
    Worker thread serving one station for the life of the simulation.

    Each cycle takes the front customer (parking while the queue is empty),
    reports it through `on_served`, then pauses `service_delay` seconds before
    the next one. stop() interrupts both the park and the pause.
    """
    def __init__(self, station: Station, service_delay: float = 1.0,
                 idle_interval: Optional[float] = 0.5,
                 on_served: Optional[Callable[[str, Customer], None]] = None):
        super().__init__(name=f"{station.name}-processor", daemon=True)
        self.station = station
        self.service_delay = max(0.0, float(service_delay))
        self.idle_interval = idle_interval
        self.on_served = on_served
        self.served: int = 0
        self._stop_event = threading.Event()

    @property
    def stopped(self) -> bool:
        return self._stop_event.is_set()

    def run(self):
        log.debug("%s started", self.name)
        while not self._stop_event.is_set():
            cust = self.station.take(self._stop_event, timeout=self.idle_interval)
            if cust is None:
                continue
            self.served += 1
            if self.on_served is not None:
                self.on_served(self.station.name, cust)
            # Interruptible pause standing in for the per-customer service time
            self._stop_event.wait(self.service_delay)
        log.debug("%s stopped after serving %d", self.name, self.served)

    def stop(self):
        self._stop_event.set()
        self.station.wake()
