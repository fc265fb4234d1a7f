"""Component Registry — which subsystems are active and which handle invitations.

Invariants:
    - Populated at startup, read afterwards (freeze() blocks further writes)
    - registered_components() lists active components that have an invitation callback,
      in activation order
"""

from collections.abc import Callable
from typing import Any


class ComponentRegistry:
    """Explicit replacement for a process-wide active-components lookup."""

    def __init__(self) -> None:
        self._active: dict[str, None] = {}
        self._callbacks: dict[str, Callable[..., Any]] = {}
        self._frozen = False

    def activate(self, component_name: str) -> None:
        self._check_writable()
        self._active.setdefault(component_name, None)

    def register_callback(
        self, component_name: str, callback: Callable[..., Any],
    ) -> None:
        """Attach an invitation-handling callback; activates the component too."""
        self._check_writable()
        self._active.setdefault(component_name, None)
        self._callbacks[component_name] = callback

    def freeze(self) -> None:
        self._frozen = True

    @property
    def active_components(self) -> list[str]:
        return list(self._active)

    def callback_for(self, component_name: str) -> Callable[..., Any] | None:
        return self._callbacks.get(component_name)

    def registered_components(self) -> list[str]:
        return [name for name in self._active if name in self._callbacks]

    def _check_writable(self) -> None:
        if self._frozen:
            raise RuntimeError("ComponentRegistry is frozen; register components at startup")
