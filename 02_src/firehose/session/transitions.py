"""Monitoring session transition table.

``transition(state, event)`` is pure: it returns the next SessionState and
the effects the coordinator must carry out. Upstream start/stop are split
into a request effect and a later completion event, so an operation in
flight is visible as the STARTING/STOPPING phase rather than a held lock.
"""

from dataclasses import dataclass, replace
from typing import Callable, Union

from ..models import SessionPhase, SessionState

MSG_STARTED = "RabbitMQ monitoring started"
MSG_STOPPED = "RabbitMQ monitoring stopped"
MSG_ALREADY_ACTIVE = "RabbitMQ monitoring already active"
MSG_ALREADY_STOPPED = "RabbitMQ monitoring already stopped"
MSG_ALREADY_STARTING = "RabbitMQ monitoring activation already in progress"
MSG_ALREADY_STOPPING = "RabbitMQ monitoring already stopping"
MSG_STOP_AFTER_START = "RabbitMQ monitoring will stop once activation completes"
MSG_RESTART_QUEUED = "RabbitMQ monitoring is stopping, restart queued"


# Events


@dataclass(frozen=True)
class ViewerConnected:
    viewer_id: str
    count: int
    transitioned: bool  # 0 -> 1


@dataclass(frozen=True)
class ViewerDisconnected:
    viewer_id: str
    count: int
    transitioned: bool  # 1 -> 0; False for an unmatched disconnect


@dataclass(frozen=True)
class StartRequested:
    viewer_id: str | None = None  # None: request did not come from a viewer


@dataclass(frozen=True)
class StopRequested:
    viewer_id: str | None = None


@dataclass(frozen=True)
class GraceExpired:
    generation: int


@dataclass(frozen=True)
class StartSucceeded:
    pass


@dataclass(frozen=True)
class StartFailed:
    error: str


@dataclass(frozen=True)
class StopCompleted:
    error: str | None = None


SessionEvent = Union[
    ViewerConnected,
    ViewerDisconnected,
    StartRequested,
    StopRequested,
    GraceExpired,
    StartSucceeded,
    StartFailed,
    StopCompleted,
]


# Effects


@dataclass(frozen=True)
class StartSource:
    pass


@dataclass(frozen=True)
class StopSource:
    pass


@dataclass(frozen=True)
class ArmGraceTimer:
    generation: int


@dataclass(frozen=True)
class CancelGraceTimer:
    pass


@dataclass(frozen=True)
class SendConnectionStatus:
    viewer_id: str
    client_count: int
    monitoring_active: bool


@dataclass(frozen=True)
class SendStatus:
    viewer_id: str
    active: bool
    message: str


@dataclass(frozen=True)
class BroadcastStatus:
    active: bool
    message: str


@dataclass(frozen=True)
class BroadcastError:
    error: str


Effect = Union[
    StartSource,
    StopSource,
    ArmGraceTimer,
    CancelGraceTimer,
    SendConnectionStatus,
    SendStatus,
    BroadcastStatus,
    BroadcastError,
]

Outcome = tuple[SessionState, list[Effect]]


def _arm_grace(state: SessionState, effects: list[Effect]) -> SessionState:
    generation = state.grace_generation + 1
    effects.append(ArmGraceTimer(generation))
    return replace(state, grace_armed=True, grace_generation=generation)


def _disarm_grace(state: SessionState, effects: list[Effect]) -> SessionState:
    if not state.grace_armed:
        return state
    effects.append(CancelGraceTimer())
    # Bumping the generation turns an expiry already in flight into a no-op
    return replace(state, grace_armed=False, grace_generation=state.grace_generation + 1)


def _begin_start(state: SessionState, effects: list[Effect]) -> SessionState:
    effects.append(StartSource())
    return replace(state, phase=SessionPhase.STARTING)


def _begin_stop(state: SessionState, effects: list[Effect]) -> SessionState:
    state = _disarm_grace(state, effects)
    effects.append(StopSource())
    return replace(state, phase=SessionPhase.STOPPING)


def _ack(viewer_id: str | None, active: bool, message: str, effects: list[Effect]) -> None:
    if viewer_id is not None:
        effects.append(SendStatus(viewer_id, active, message))


def _on_viewer_connected(state: SessionState, event: ViewerConnected) -> Outcome:
    effects: list[Effect] = []
    state = replace(state, viewer_count=event.count)

    # A reconnect within the grace window keeps the running session
    if event.transitioned:
        state = _disarm_grace(state, effects)

    effects.append(
        SendConnectionStatus(event.viewer_id, event.count, state.monitoring_active)
    )
    effects.append(
        SendStatus(event.viewer_id, state.monitoring_active, state.status_message())
    )

    if state.phase is SessionPhase.IDLE and not state.manual_stop:
        state = _begin_start(state, effects)

    return state, effects


def _on_viewer_disconnected(state: SessionState, event: ViewerDisconnected) -> Outcome:
    effects: list[Effect] = []
    state = replace(state, viewer_count=event.count)

    if event.transitioned and state.phase is SessionPhase.ACTIVE and not state.grace_armed:
        state = _arm_grace(state, effects)

    return state, effects


def _on_start_requested(state: SessionState, event: StartRequested) -> Outcome:
    effects: list[Effect] = []
    state = replace(state, manual_stop=False)

    if state.phase is SessionPhase.IDLE:
        state = _begin_start(state, effects)
    elif state.phase is SessionPhase.STARTING:
        _ack(event.viewer_id, False, MSG_ALREADY_STARTING, effects)
    elif state.phase is SessionPhase.ACTIVE:
        _ack(event.viewer_id, True, MSG_ALREADY_ACTIVE, effects)
    else:
        # Honoured on StopCompleted even with no viewers connected
        state = replace(state, start_pending=True)
        _ack(event.viewer_id, False, MSG_RESTART_QUEUED, effects)

    return state, effects


def _on_stop_requested(state: SessionState, event: StopRequested) -> Outcome:
    effects: list[Effect] = []
    state = replace(state, manual_stop=True, start_pending=False)

    if state.phase is SessionPhase.ACTIVE:
        state = _begin_stop(state, effects)
    elif state.phase is SessionPhase.IDLE:
        _ack(event.viewer_id, False, MSG_ALREADY_STOPPED, effects)
    elif state.phase is SessionPhase.STARTING:
        _ack(event.viewer_id, False, MSG_STOP_AFTER_START, effects)
    else:
        _ack(event.viewer_id, False, MSG_ALREADY_STOPPING, effects)

    return state, effects


def _on_grace_expired(state: SessionState, event: GraceExpired) -> Outcome:
    effects: list[Effect] = []
    if not state.grace_armed or event.generation != state.grace_generation:
        return state, effects

    state = replace(state, grace_armed=False)
    if state.viewer_count == 0 and state.phase is SessionPhase.ACTIVE:
        # Automatic stop is not a user decision
        state = replace(state, manual_stop=False)
        state = _begin_stop(state, effects)

    return state, effects


def _on_start_succeeded(state: SessionState, event: StartSucceeded) -> Outcome:
    effects: list[Effect] = []
    if state.phase is not SessionPhase.STARTING:
        return state, effects

    if state.manual_stop:
        return _begin_stop(state, effects), effects

    state = replace(state, phase=SessionPhase.ACTIVE)
    effects.append(BroadcastStatus(True, MSG_STARTED))
    if state.viewer_count == 0:
        state = _arm_grace(state, effects)

    return state, effects


def _on_start_failed(state: SessionState, event: StartFailed) -> Outcome:
    effects: list[Effect] = []
    if state.phase is not SessionPhase.STARTING:
        return state, effects

    state = replace(state, phase=SessionPhase.IDLE)
    effects.append(BroadcastError(event.error))
    return state, effects


def _on_stop_completed(state: SessionState, event: StopCompleted) -> Outcome:
    effects: list[Effect] = []
    if state.phase is not SessionPhase.STOPPING:
        return state, effects

    restart = not state.manual_stop and (state.start_pending or state.viewer_count > 0)
    # A failed teardown still counts as stopped, otherwise restarts stay blocked
    state = replace(state, phase=SessionPhase.IDLE, start_pending=False)
    effects.append(BroadcastStatus(False, MSG_STOPPED))

    if restart:
        state = _begin_start(state, effects)

    return state, effects


_HANDLERS: dict[type, Callable[[SessionState, SessionEvent], Outcome]] = {
    ViewerConnected: _on_viewer_connected,
    ViewerDisconnected: _on_viewer_disconnected,
    StartRequested: _on_start_requested,
    StopRequested: _on_stop_requested,
    GraceExpired: _on_grace_expired,
    StartSucceeded: _on_start_succeeded,
    StartFailed: _on_start_failed,
    StopCompleted: _on_stop_completed,
}


def transition(state: SessionState, event: SessionEvent) -> Outcome:
    """Apply one event to the session state."""
    return _HANDLERS[type(event)](state, event)
