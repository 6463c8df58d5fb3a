"""Model lifecycle notifications.

Listeners are registered per model class and receive the instance. For the
halting events (``saving``, ``creating``, ``updating``) a listener that
returns ``False`` cancels the save.
"""

from __future__ import annotations

from collections import defaultdict
from typing import Any, Callable, DefaultDict, List, Tuple

Handler = Callable[[Any], Any]

SAVING = "saving"
SAVED = "saved"
CREATING = "creating"
CREATED = "created"
UPDATING = "updating"
UPDATED = "updated"

_listeners: DefaultDict[Tuple[type, str], List[Handler]] = defaultdict(list)


def listen(model: type, event: str, handler: Handler) -> None:
    _listeners[(model, event)].append(handler)


def remove(model: type, event: str, handler: Handler) -> None:
    handlers = _listeners.get((model, event))
    if handlers and handler in handlers:
        handlers.remove(handler)


def clear() -> None:
    _listeners.clear()


def dispatch(instance: Any, event: str, *, halt: bool = False) -> bool:
    for cls in type(instance).__mro__:
        for handler in list(_listeners.get((cls, event), ())):
            result = handler(instance)
            if halt and result is False:
                return False
    return True
