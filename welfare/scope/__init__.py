"""
Regional scope authorization for the welfare administration backend.

This package has no dependency on other welfare packages (welfare.db, welfare.security,
etc.). Build a Principal and a Resource, then ask a ScopeAuthorizer.
"""

from .authorizer import ScopeAuthorizer, ScopePolicy
from .filters import Condition, Match, QueryFragment
from .principal import Action, Principal, Resource, ResourceKind, Scope
from .resolver import RegionHierarchy, Restricted, ScopeFilter, Unrestricted, resolve
from .roles import RegionLevel, Role, can_administer_level, can_assign, rank
from .transitions import ApplicationStatus, allowed_transitions, is_terminal, is_valid_transition

__all__ = [
    "Action",
    "ApplicationStatus",
    "Condition",
    "Match",
    "Principal",
    "QueryFragment",
    "RegionHierarchy",
    "RegionLevel",
    "Resource",
    "ResourceKind",
    "Restricted",
    "Role",
    "Scope",
    "ScopeAuthorizer",
    "ScopeFilter",
    "ScopePolicy",
    "Unrestricted",
    "allowed_transitions",
    "can_administer_level",
    "can_assign",
    "is_terminal",
    "is_valid_transition",
    "rank",
    "resolve",
]
