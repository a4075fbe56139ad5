"""Registry resolving refinement policy names to selection strategies."""

import threading
from typing import Any, Dict, List, Type, TypeVar, Union

from ..abstractions.types import RefinementPolicy
from ..grid_systems.exceptions import InvalidPolicyError
from ..infrastructure.logging import get_logger

logger = get_logger(__name__)

T = TypeVar('T')


def _normalize_name(name: str) -> str:
    """'NeighborhoodBox', 'neighborhood_box' and 'neighborhood-box' all normalise alike."""
    return ''.join(ch for ch in name.strip().lower() if ch not in '_- ')


def parse_policy(policy: Union[str, RefinementPolicy]) -> RefinementPolicy:
    """
    Resolve a policy given as enum member, value, member name or CamelCase name.

    Raises:
        InvalidPolicyError: the name matches no known policy
    """
    if isinstance(policy, RefinementPolicy):
        return policy

    if isinstance(policy, str):
        wanted = _normalize_name(policy)
        for member in RefinementPolicy:
            if wanted == _normalize_name(member.value):
                return member

    raise InvalidPolicyError(policy, [member.value for member in RefinementPolicy])


class PolicyRegistry:
    """Thread-safe registry of selection strategy classes keyed by policy."""

    def __init__(self, name: str):
        self.name = name
        self._components: Dict[RefinementPolicy, Type] = {}
        self._instances: Dict[RefinementPolicy, Any] = {}
        self._lock = threading.RLock()

    def register(self, cls: Type[T], force: bool = False) -> Type[T]:
        """
        Register a strategy class under its ``policy`` attribute.

        Returns:
            The registered class (for decorator usage)
        """
        policy = getattr(cls, 'policy', None)
        if not isinstance(policy, RefinementPolicy):
            raise TypeError(f"{cls.__name__} must declare a RefinementPolicy 'policy' attribute")

        with self._lock:
            existing = self._components.get(policy)
            if existing is not None and existing is not cls and not force:
                raise ValueError(
                    f"Policy '{policy.value}' already registered in {self.name} registry "
                    f"by {existing.__module__}.{existing.__name__}. Use force=True to re-register."
                )
            self._components[policy] = cls
            self._instances.pop(policy, None)
            logger.debug(f"Registered {cls.__name__} for policy '{policy.value}' in {self.name} registry")

        return cls

    def register_decorator(self, force: bool = False):
        """Decorator form of ``register``."""
        def decorator(cls: Type[T]) -> Type[T]:
            return self.register(cls, force=force)
        return decorator

    def get(self, policy: Union[str, RefinementPolicy]) -> Type:
        """Get the strategy class for a policy."""
        resolved = parse_policy(policy)
        with self._lock:
            if resolved not in self._components:
                raise InvalidPolicyError(policy, self.list_registered())
            return self._components[resolved]

    def get_instance(self, policy: Union[str, RefinementPolicy]) -> Any:
        """Get a shared strategy instance; strategies hold no per-call state."""
        resolved = parse_policy(policy)
        with self._lock:
            if resolved not in self._instances:
                self._instances[resolved] = self.get(resolved)()
            return self._instances[resolved]

    def list_registered(self) -> List[str]:
        with self._lock:
            return sorted(policy.value for policy in self._components)

    def __contains__(self, policy: Union[str, RefinementPolicy]) -> bool:
        try:
            resolved = parse_policy(policy)
        except InvalidPolicyError:
            return False
        with self._lock:
            return resolved in self._components


policy_registry = PolicyRegistry('refinement_policies')
