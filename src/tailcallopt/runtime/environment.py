"""
Execution Environment

One Environment per function activation (plus the global one), linked to
the environment the function was created in. `var` scoping means blocks do
not get their own environment; a named function expression gets a one-name
environment for its own name.
"""

from typing import Any, Dict, Iterator, Optional


class Environment:
    """
    Name to value bindings with a parent link.
    - declare(name, value): bind in this environment
    - lookup(name): search this environment outward
    - assign(name, value): update the nearest binding; False when none exists
    """

    def __init__(self, parent: Optional["Environment"] = None):
        self._bindings: Dict[str, Any] = {}
        self.parent = parent

    def declare(self, name: str, value: Any) -> None:
        self._bindings[name] = value

    def declares(self, name: str) -> bool:
        """True if `name` is bound in this environment itself."""
        return name in self._bindings

    def resolve(self, name: str) -> Optional["Environment"]:
        """The nearest environment binding `name`, or None."""
        env: Optional[Environment] = self
        while env is not None:
            if name in env._bindings:
                return env
            env = env.parent
        return None

    def lookup(self, name: str) -> Any:
        """Value of `name`. Raises KeyError when unbound."""
        env = self.resolve(name)
        if env is None:
            raise KeyError(name)
        return env._bindings[name]

    def assign(self, name: str, value: Any) -> bool:
        env = self.resolve(name)
        if env is None:
            return False
        env._bindings[name] = value
        return True

    def root(self) -> "Environment":
        env = self
        while env.parent is not None:
            env = env.parent
        return env

    def names(self) -> Iterator[str]:
        return iter(self._bindings)
