"""
Philosopher State Machine for the Dining Philosophers Simulator.

Applies one event to one philosopher:

    END_THINKING  THINKING -> HUNGRY, reach for the first chopstick
    PICKUP_x      granted: take it; eat once both are held, otherwise
                  reach for the other one in the same tick
                  denied:  WAITING, retry the same pickup after RETRY_DELAY
    END_EATING    EATING -> THINKING, put both chopsticks down

Thinking and eating durations are drawn from the injected random source
every time the phase starts.
"""

from typing import List

from algorithms.context import EngineContext, RETRY_DELAY
from analysis.events import TraceEvent, TraceEventType
from models.event_queue import Event, EventType
from models.philosopher import Philosopher, PhilosopherState, Side
from models.table_state import InternalConsistencyError

PICKUP_EVENTS = {
    Side.LEFT: EventType.PICKUP_LEFT,
    Side.RIGHT: EventType.PICKUP_RIGHT,
}

# Within one tick: releases, then hunger, then pickups
APPLY_RANK = {
    EventType.END_EATING: 0,
    EventType.END_THINKING: 1,
    EventType.PICKUP_LEFT: 2,
    EventType.PICKUP_RIGHT: 2,
}


def apply_order(events: List[Event]) -> List[Event]:
    """
    Order simultaneous events so the outcome does not depend on queue order.

    Chopsticks released in a tick are available to every pickup of that
    tick, whatever the priorities or insertion order of the events.
    """
    return sorted(events, key=lambda e: APPLY_RANK[e.event_type])


def side_of(event_type: EventType) -> Side:
    """Side targeted by a pickup event."""
    if event_type == EventType.PICKUP_LEFT:
        return Side.LEFT
    if event_type == EventType.PICKUP_RIGHT:
        return Side.RIGHT
    raise ValueError(f"{event_type.value} is not a pickup event")


def target_chopstick(event: Event, philosopher: Philosopher) -> int:
    """Physical chopstick a pickup event refers to."""
    return philosopher.chopstick_for(side_of(event.event_type))


def apply_event(event: Event, ctx: EngineContext) -> None:
    """
    Apply a single event to its philosopher.

    Args:
        event: Event popped from the queue (already past conflict resolution)
        ctx: Engine context

    Raises:
        InternalConsistencyError: If the philosopher is in the wrong state
    """
    philosopher = ctx.table.philosophers[event.philosopher_id]

    if event.event_type == EventType.END_THINKING:
        _end_thinking(philosopher, ctx)
    elif event.event_type.is_pickup:
        _pickup(event, philosopher, ctx)
    elif event.event_type == EventType.END_EATING:
        _end_eating(philosopher, ctx)
    else:
        raise InternalConsistencyError(f"Unknown event type {event.event_type!r}")


def _require_state(philosopher: Philosopher, event: EventType, *allowed: PhilosopherState) -> None:
    if philosopher.state not in allowed:
        raise InternalConsistencyError(
            f"P{philosopher.philosopher_id} got {event.value} while {philosopher.state.value}"
        )


def _end_thinking(philosopher: Philosopher, ctx: EngineContext) -> None:
    _require_state(philosopher, EventType.END_THINKING, PhilosopherState.THINKING)

    philosopher.record_thinking(ctx.now)
    philosopher.state = PhilosopherState.HUNGRY
    ctx.log(f"P{philosopher.philosopher_id} is HUNGRY", "debug")

    first = ctx.policy.first_side(philosopher)
    ctx.queue.schedule(0, PICKUP_EVENTS[first], philosopher.philosopher_id)


def _pickup(event: Event, philosopher: Philosopher, ctx: EngineContext) -> None:
    _require_state(
        philosopher, event.event_type,
        PhilosopherState.HUNGRY, PhilosopherState.WAITING
    )

    side = side_of(event.event_type)
    chopstick_id = philosopher.chopstick_for(side)
    pid = philosopher.philosopher_id

    if philosopher.holds(side):
        raise InternalConsistencyError(f"P{pid} requests C{chopstick_id} it already holds")

    reason = ""
    if not ctx.policy.can_acquire(philosopher, side, ctx.table):
        reason = f"refused by {ctx.policy.name.value} strategy"
    elif not ctx.table.is_available(chopstick_id):
        reason = f"held by P{ctx.table.chopsticks[chopstick_id].held_by}"

    if reason:
        philosopher.enter_waiting()
        ctx.queue.schedule(RETRY_DELAY, event.event_type, pid, event.priority)
        if ctx.logger:
            ctx.logger.log_pickup(ctx.now, pid, chopstick_id, False, reason)
        ctx.event_log.add(TraceEvent(
            time=ctx.now,
            event_type=TraceEventType.DENIAL,
            philosopher_id=pid,
            chopstick_id=chopstick_id,
            reason=reason
        ))
        return

    ctx.table.pick_up(philosopher, side)
    if ctx.logger:
        ctx.logger.log_pickup(ctx.now, pid, chopstick_id, True)
    ctx.event_log.add(TraceEvent(
        time=ctx.now,
        event_type=TraceEventType.ACQUIRE,
        philosopher_id=pid,
        chopstick_id=chopstick_id
    ))

    if philosopher.holds_both():
        philosopher.record_waiting(ctx.now)
        philosopher.state = PhilosopherState.EATING
        eat_time = ctx.random_source.duration()
        ctx.log(f"P{pid} is EATING for {eat_time}", "debug")
        ctx.queue.schedule(eat_time, EventType.END_EATING, pid)
    else:
        ctx.queue.schedule(0, PICKUP_EVENTS[side.other], pid)


def _end_eating(philosopher: Philosopher, ctx: EngineContext) -> None:
    _require_state(philosopher, EventType.END_EATING, PhilosopherState.EATING)

    pid = philosopher.philosopher_id
    philosopher.record_eating(ctx.now)
    philosopher.state = PhilosopherState.THINKING

    for side in (Side.LEFT, Side.RIGHT):
        chopstick_id = philosopher.chopstick_for(side)
        ctx.table.put_down(philosopher, side)
        ctx.event_log.add(TraceEvent(
            time=ctx.now,
            event_type=TraceEventType.RELEASE,
            philosopher_id=pid,
            chopstick_id=chopstick_id
        ))

    think_time = ctx.random_source.duration()
    ctx.log(f"P{pid} is THINKING for {think_time}", "debug")
    ctx.queue.schedule(think_time, EventType.END_THINKING, pid)
