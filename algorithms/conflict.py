"""
Conflict Resolver for the Dining Philosophers Simulator.

Detects simultaneous requests for the same chopstick within one batch and
lets the active strategy pick a single winner. Losers are moved to WAITING
and retry one tick later with a raised priority; they are removed from the
batch so only the winner reaches the state machine.
"""

from typing import Dict, List, Tuple

from algorithms.context import EngineContext, RETRY_DELAY
from algorithms.state_machine import target_chopstick
from analysis.events import TraceEvent, TraceEventType
from models.event_queue import Event


def group_requests(batch: List[Event], ctx: EngineContext) -> Dict[int, List[Event]]:
    """
    Group the pickup events of a batch by the chopstick they target.

    Args:
        batch: Events of one logical tick, in queue order
        ctx: Engine context

    Returns:
        Dict mapping chopstick id to its requests, in batch order
    """
    requests: Dict[int, List[Event]] = {}
    for event in batch:
        if not event.event_type.is_pickup:
            continue
        philosopher = ctx.table.philosophers[event.philosopher_id]
        chopstick_id = target_chopstick(event, philosopher)
        requests.setdefault(chopstick_id, []).append(event)
    return requests


def resolve_conflicts(batch: List[Event], ctx: EngineContext) -> Tuple[List[Event], int]:
    """
    Resolve every contested chopstick in a batch.

    For each chopstick with two or more requests:
    1. Count one conflict
    2. Ask the strategy for a winner
    3. Move each loser to WAITING and reschedule its pickup after
       RETRY_DELAY with priority one above the value that lost

    Args:
        batch: Events of one logical tick, in queue order
        ctx: Engine context

    Returns:
        Tuple of (events still to apply in batch order, conflicts resolved)
    """
    lost = set()
    conflicts = 0

    for chopstick_id, requests in group_requests(batch, ctx).items():
        if len(requests) < 2:
            continue

        conflicts += 1
        ctx.stats.conflict_count += 1

        winner, fallback = ctx.policy.choose_winner(requests, ctx.random_source)
        if fallback:
            ctx.stats.fallback_resolutions += 1
            ctx.log(
                f"Unexpected contention on C{chopstick_id} under "
                f"{ctx.policy.name.value} strategy - first requester wins",
                "warning"
            )

        loser_ids = []
        for request in requests:
            if request is winner:
                continue
            philosopher = ctx.table.philosophers[request.philosopher_id]
            philosopher.enter_waiting()
            ctx.queue.schedule(
                RETRY_DELAY,
                request.event_type,
                request.philosopher_id,
                request.priority + 1
            )
            lost.add(id(request))
            loser_ids.append(request.philosopher_id)

        if ctx.logger:
            ctx.logger.log_conflict(ctx.now, chopstick_id, winner.philosopher_id, loser_ids)
        ctx.event_log.add(TraceEvent(
            time=ctx.now,
            event_type=TraceEventType.CONFLICT,
            philosopher_id=winner.philosopher_id,
            chopstick_id=chopstick_id,
            message=f"P{winner.philosopher_id} wins over "
                    + ", ".join(f"P{pid}" for pid in loser_ids),
            reason="fallback" if fallback else ctx.policy.name.value
        ))

    survivors = [event for event in batch if id(event) not in lost]
    return survivors, conflicts
