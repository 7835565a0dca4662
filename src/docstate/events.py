"""
EventHub: in-memory pub/sub for model lifecycle hooks.

Event names are synthesized from (phase, model type) so unrelated model types
sharing a phase name never see each other's listeners:

    model.saving.myapp.models.Post

Listener results are tri-state. Returning HookResult.ABORT (or the literal
False) from a listener on a halting fire stops propagation and makes fire()
return False. HookResult.CONTINUE, None, or any other value means "no opinion".

Listeners run synchronously in registration order. An exception raised by a
listener propagates immediately; remaining listeners do not run.
"""

import logging
from enum import Enum
from typing import Any, Callable, Dict, List, Optional, Sequence, Union

logger = logging.getLogger(__name__)

Listener = Callable[..., Any]

# Phases whose listeners may veto the operation; every other phase is notify-only
HALTING_PHASES = ('validating', 'creating', 'updating', 'deleting', 'saving')


class HookResult(Enum):
    CONTINUE = 'continue'
    ABORT = 'abort'


def is_abort(response: Any) -> bool:
    return response is False or response is HookResult.ABORT


def model_event_name(phase: str, model_type: type) -> str:
    """Fully-qualified event name for a phase of a model type."""
    return f"model.{phase}.{model_type.__module__}.{model_type.__qualname__}"


class EventHub:
    """Named-event registry. Process lifetime, no durability."""

    def __init__(self):
        self._listeners: Dict[str, List[Listener]] = {}

    def listen(self, event: str, callback: Listener) -> Listener:
        """Subscribe callback to event. Returns callback (decorator-friendly)."""
        if not callable(callback):
            raise TypeError(f"Listener for {event!r} must be callable, got {type(callback).__name__}")
        self._listeners.setdefault(event, []).append(callback)
        return callback

    def forget(self, event: str, callback: Optional[Listener] = None) -> None:
        """Unsubscribe callback, or every listener of event when callback is None."""
        if callback is None:
            self._listeners.pop(event, None)
            return
        listeners = self._listeners.get(event)
        if listeners and callback in listeners:
            listeners.remove(callback)

    def has_listeners(self, event: str) -> bool:
        return bool(self._listeners.get(event))

    def listeners(self, event: str) -> List[Listener]:
        return list(self._listeners.get(event, ()))

    def clear(self) -> None:
        self._listeners.clear()

    def fire(self, event: str, args: Sequence[Any] = (), halt: bool = True) -> Union[bool, List[Any]]:
        """Invoke listeners of event in registration order.

        Returns:
            halt=True:  False if a listener aborted, else True
            halt=False: list of every listener's response
        """
        responses: List[Any] = []
        # Snapshot so listeners may (un)subscribe while firing
        for listener in list(self._listeners.get(event, ())):
            response = listener(*args)
            if halt and is_abort(response):
                logger.debug(f"Event {event!r} aborted by {getattr(listener, '__qualname__', listener)!r}")
                return False
            responses.append(response)
        return True if halt else responses


_default_hub = EventHub()


def get_event_hub() -> EventHub:
    """Process-wide hub used by models that do not pin their own."""
    return _default_hub


def fire_model_event(hub: EventHub, model: Any, phase: str, halt: Optional[bool] = None) -> Union[bool, List[Any]]:
    """Fire phase for model's concrete type with the model as sole argument.

    halt defaults to True for HALTING_PHASES and False otherwise.
    """
    if halt is None:
        halt = phase in HALTING_PHASES
    return hub.fire(model_event_name(phase, type(model)), (model,), halt)
