"""Key-value store contract shared by every backend."""
from dataclasses import dataclass, field
from typing import Callable, Optional, Protocol

# callback(key, new_value); new_value is None when the key was removed
ChangeCallback = Callable[[str, Optional[str]], None]


@dataclass(eq=False)
class Subscription:
    """Handle returned by KeyValueStore.subscribe()."""
    key: str
    callback: ChangeCallback
    _cancel: Callable[["Subscription"], None] = field(repr=False, default=lambda s: None)
    active: bool = True

    def cancel(self) -> None:
        """Stop receiving notifications. Safe to call twice."""
        if not self.active:
            return
        self.active = False
        self._cancel(self)


class KeyValueStore(Protocol):
    """
    Synchronous persisted store seen from one execution context.

    `subscribe` callbacks fire only for writes made by *other* contexts,
    never for this context's own `set`.
    """

    def get(self, key: str) -> Optional[str]:
        ...

    def set(self, key: str, value: str) -> None:
        ...

    def subscribe(self, key: str, callback: ChangeCallback) -> Subscription:
        ...
