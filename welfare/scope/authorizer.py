"""
Scope authorizer: the single place that decides who may see or change what.

Usage:
    authorizer = ScopeAuthorizer(ScopePolicy())
    authorizer.can_access(principal, resource, Action.READ)   # single record
    authorizer.build_filter(principal, ResourceKind.APPLICATION)  # list endpoints

Both answers are derived from the same condition list, so for any collection the
filter selects exactly the records the predicate allows.

This module is pure Python and has no FastAPI or SQLAlchemy dependency.
"""

from __future__ import annotations

from dataclasses import dataclass
import logging

from .filters import MATCH_NOTHING, NO_CONSTRAINT, Condition, Match, QueryFragment
from .principal import Action, Principal, Resource, ResourceKind, Scope
from .resolver import RegionHierarchy, Restricted, ScopeFilter, Unrestricted, expand_descendants, resolve
from .roles import Role, can_administer_level, can_assign, region_level_for

logger = logging.getLogger(__name__)

NON_FINANCIAL_KINDS = frozenset(k for k in ResourceKind if not k.is_financial)


@dataclass(frozen=True)
class ScopePolicy:
    """
    Tunable parts of the model.

    state_admin_financial_access:
        when False, state_admin is denied donor/financial records (it never gets a
        regional scope, so narrowing means denial).
    expand_descendants:
        when True, an admin's regions also cover every region below them.
    """

    state_admin_financial_access: bool = True
    expand_descendants: bool = False


class ScopeAuthorizer:
    def __init__(self, policy: ScopePolicy | None = None, hierarchy: RegionHierarchy | None = None) -> None:
        self._policy = policy or ScopePolicy()
        self._hierarchy = hierarchy

    @property
    def policy(self) -> ScopePolicy:
        return self._policy

    # ---- Resolution --------------------------------------------------------------

    def resolve(self, principal: Principal) -> ScopeFilter:
        hierarchy = self._hierarchy if self._policy.expand_descendants else None
        return resolve(principal, hierarchy)

    def _conditions(self, principal: Principal, kind: ResourceKind | None) -> QueryFragment:
        role = principal.role
        if role is None:
            return MATCH_NOTHING

        if role is Role.SUPER_ADMIN:
            return NO_CONSTRAINT
        if role is Role.STATE_ADMIN:
            if self._policy.state_admin_financial_access:
                return NO_CONSTRAINT
            if kind is None:
                return QueryFragment(any_of=(Condition("kind", Match.IN, NON_FINANCIAL_KINDS),))
            return MATCH_NOTHING if kind.is_financial else NO_CONSTRAINT

        if role is Role.BENEFICIARY:
            if principal.user_id is None:
                return MATCH_NOTHING
            return QueryFragment(any_of=(Condition("owner", Match.IN, frozenset({principal.user_id})),))

        scope = self.resolve(principal)
        if isinstance(scope, Unrestricted):  # pragma: no cover (handled above)
            return NO_CONSTRAINT

        level = region_level_for(role)
        if level is not None:
            # A regional admin is judged on its own level only. Target regions and the
            # open marker apply to records with nothing at that level (programs).
            if not scope.region_ids:
                return MATCH_NOTHING
            return QueryFragment(
                any_of=(
                    Condition(level.value, Match.IN, scope.region_ids),
                    Condition("target_regions", Match.OVERLAPS, scope.region_ids, only_if_unset=level.value),
                    Condition("open_to_all_regions", Match.FLAG, only_if_unset=level.value),
                )
            )

        conditions: list[Condition] = []
        if scope.project_ids:
            conditions.append(Condition("project", Match.IN, scope.project_ids))
        if scope.scheme_ids:
            conditions.append(Condition("scheme", Match.IN, scope.scheme_ids))
        return QueryFragment(any_of=tuple(conditions))

    # ---- Filter builder ----------------------------------------------------------

    def build_filter(self, principal: Principal, kind: ResourceKind | None = None) -> QueryFragment:
        """
        Storage-side equivalent of `can_access(principal, R, READ)` for resources of
        `kind`. Unconstrained for unrestricted roles, match-nothing when the principal
        holds no grants at all. Without a `kind` the fragment also carries whatever
        kind restriction the policy imposes (a `kind` condition).
        """

        if not isinstance(principal, Principal):
            logger.warning("Scope: build_filter called without a Principal (%s)", type(principal).__name__)
            return MATCH_NOTHING
        return self._conditions(principal, kind)

    # ---- Access predicate --------------------------------------------------------

    def can_access(self, principal: Principal, resource: Resource, action: Action | str = Action.READ) -> bool:
        """
        Decide whether `principal` may perform `action` on `resource`.

        Never raises: malformed principals or resources are a deny.
        """

        if not isinstance(principal, Principal) or not isinstance(resource, Resource):
            logger.warning(
                "Scope: deny malformed input principal=%s resource=%s",
                type(principal).__name__,
                type(resource).__name__,
            )
            return False

        try:
            kind = ResourceKind(resource.kind)
            allowed = self._conditions(principal, kind).matches(resource)
        except (TypeError, ValueError, AttributeError) as exc:
            logger.warning("Scope: deny on malformed data user_id=%s error=%s", principal.user_id, exc)
            return False

        logger.debug(
            "Scope: %s role=%s user_id=%s action=%s kind=%s",
            "allow" if allowed else "deny",
            principal.role,
            principal.user_id,
            action,
            resource.kind,
        )
        return allowed

    # ---- User management ---------------------------------------------------------

    def can_assign(self, actor_role: object, target_role: object) -> bool:
        return can_assign(actor_role, target_role)

    def administered_scope(self, principal: Principal) -> ScopeFilter:
        """
        Scope used for user management. Always covers the whole subtree below the
        principal's regions (when a hierarchy is available): a district admin hands
        out areas and units inside its district.
        """

        scope = resolve(principal)
        if isinstance(scope, Restricted) and scope.region_ids and self._hierarchy is not None:
            return Restricted(
                region_ids=expand_descendants(scope.region_ids, self._hierarchy),
                project_ids=scope.project_ids,
                scheme_ids=scope.scheme_ids,
            )
        return scope

    def covers_region(self, principal: Principal, region_id: object) -> bool:
        scope = self.administered_scope(principal)
        if isinstance(scope, Unrestricted):
            return True
        return region_level_for(principal.role) is not None and region_id in scope.region_ids

    def can_manage_user(self, actor: Principal, target: Principal) -> bool:
        """
        May `actor` view/edit the account of `target`?

        - everyone may manage their own account
        - super_admin may manage anyone
        - otherwise the actor must be able to assign the target's role; regional
          admins additionally need the target's regions to fall inside their own
        """

        if actor.role is None:
            return False
        if actor.user_id is not None and actor.user_id == target.user_id:
            return True
        if actor.role is Role.SUPER_ADMIN:
            return True
        if not can_assign(actor.role, target.role):
            return False

        scope = self.administered_scope(actor)
        if isinstance(scope, Unrestricted):
            return True
        if region_level_for(actor.role) is None:
            return False
        if not target.scope.regions:
            return False
        return target.scope.regions <= scope.region_ids

    def can_grant_scope(self, actor: Principal, role: object, scope: Scope) -> bool:
        """
        May `actor` give some user `role` with `scope`?

        The granted regions/projects/schemes must lie inside the actor's own scope,
        so nobody can hand out (or hand themselves) more than they hold.
        """

        target_role = Role.coerce(role)
        if actor.role is None or target_role is None:
            return False
        if not can_assign(actor.role, target_role):
            return False

        target_level = region_level_for(target_role)
        if target_level is not None and (scope.projects or scope.schemes):
            # Regional roles are scoped by region alone.
            return False
        if scope.level is not None:
            if target_level is not None and scope.level is not target_level:
                return False
            if not can_administer_level(actor.role, scope.level):
                return False

        actor_scope = self.administered_scope(actor)
        if isinstance(actor_scope, Unrestricted):
            return True
        return (
            scope.regions <= actor_scope.region_ids
            and scope.projects <= actor_scope.project_ids
            and scope.schemes <= actor_scope.scheme_ids
        )
