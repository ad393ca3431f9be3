from __future__ import annotations

from dataclasses import dataclass

from welfare.scope import Action, Principal, QueryFragment, Resource, ResourceKind, ScopeAuthorizer, ScopeFilter


@dataclass(frozen=True)
class AuthzContext:
    """
    Per-request authorization context.

    Attached to:
    - request.state (FastAPI request lifetime)
    - Session.info (SQLAlchemy session lifetime), where the scoping hook reads it
    """

    user_id: int
    principal: Principal
    authorizer: ScopeAuthorizer

    # Resolved once per request by the security dependency.
    scope: ScopeFilter

    def fragment_for(self, kind: ResourceKind) -> QueryFragment:
        return self.authorizer.build_filter(self.principal, kind)

    def can_access(self, resource: Resource, action: Action = Action.READ) -> bool:
        return self.authorizer.can_access(self.principal, resource, action)
