from __future__ import annotations

from collections.abc import Callable, Iterable

from welfare.scope import Role


def require_roles(roles: Iterable[Role | str]) -> Callable:
    """
    Declare the roles an endpoint needs, next to the endpoint.

    This does not check anything itself. It attaches metadata that the global
    `enforce_security` dependency reads after routing, on top of the YAML rules.
    """

    names = {Role(r).value for r in roles}

    def decorator(fn: Callable) -> Callable:
        existing = set(getattr(fn, "__security_required_roles__", set()))
        setattr(fn, "__security_required_roles__", existing | names)
        return fn

    return decorator
