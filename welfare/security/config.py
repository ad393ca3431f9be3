from __future__ import annotations

import re
from dataclasses import dataclass
from pathlib import Path
from typing import Any

import yaml
from pydantic import BaseModel, Field, ValidationError

from welfare.scope import Role, ScopePolicy


class ScopeConfigError(ValueError):
    """Raised when the security YAML is invalid."""


class AuthConfig(BaseModel):
    provider: str = "dummy"
    authorization_header: str = "Authorization"
    bearer_prefix: str = "Bearer"


class DefaultRule(BaseModel):
    auth_required: bool = True
    required_roles: list[str] = Field(default_factory=list)


class RouteRule(BaseModel):
    path: str
    methods: list[str] = Field(default_factory=lambda: ["GET"])

    auth_required: bool | None = None
    required_roles: list[str] = Field(default_factory=list)

    def normalized_methods(self) -> set[str]:
        return {m.upper() for m in self.methods}


class PolicyConfig(BaseModel):
    state_admin_financial_access: bool = True
    expand_descendants: bool = False

    def to_policy(self) -> ScopePolicy:
        return ScopePolicy(
            state_admin_financial_access=self.state_admin_financial_access,
            expand_descendants=self.expand_descendants,
        )


class SecurityConfigModel(BaseModel):
    auth: AuthConfig = Field(default_factory=AuthConfig)
    default: DefaultRule = Field(default_factory=DefaultRule)
    routes: list[RouteRule] = Field(default_factory=list)
    policy: PolicyConfig = Field(default_factory=PolicyConfig)


@dataclass(frozen=True)
class EffectiveRule:
    """
    Fully-resolved rule (defaults applied) for a particular request.
    """

    auth_required: bool
    required_roles: frozenset[str]


def _path_template_to_regex(path_template: str) -> re.Pattern[str]:
    # "/applications/{id}" -> r"^/applications/[^/]+$"
    regex = re.sub(r"\{[^/]+\}", r"[^/]+", path_template)
    return re.compile(rf"^{regex}$")


class SecurityConfig:
    """
    Runtime helper around validated config + route matching.
    """

    def __init__(self, model: SecurityConfigModel):
        self.model = model

        self._exact_rules: dict[str, list[RouteRule]] = {}
        for r in self.model.routes:
            self._exact_rules.setdefault(r.path, []).append(r)
        self._compiled_rules = [(_path_template_to_regex(r.path), r) for r in self.model.routes]
        self._policy = self.model.policy.to_policy()

    @property
    def auth(self) -> AuthConfig:
        return self.model.auth

    @property
    def policy(self) -> ScopePolicy:
        return self._policy

    def match(self, path: str, method: str) -> EffectiveRule:
        """
        Find the best matching rule for (path, method), then apply defaults.

        Exact paths win over templates, so `/applications/stats` can carry a different
        rule than `/applications/{id}`.
        """

        method = method.upper()
        default = self.model.default

        for candidate in self._exact_rules.get(path, []):
            if method in candidate.normalized_methods():
                return _effective(candidate, default)

        for regex, candidate in self._compiled_rules:
            if method in candidate.normalized_methods() and regex.match(path):
                return _effective(candidate, default)

        return EffectiveRule(
            auth_required=default.auth_required,
            required_roles=frozenset(default.required_roles),
        )


def _effective(rule: RouteRule, default: DefaultRule) -> EffectiveRule:
    # A rule that names roles needs a user to check them against.
    inferred_auth_required = default.auth_required or bool(rule.required_roles)

    return EffectiveRule(
        auth_required=inferred_auth_required if rule.auth_required is None else rule.auth_required,
        required_roles=frozenset(rule.required_roles or default.required_roles),
    )


def _check_roles(model: SecurityConfigModel) -> None:
    known = {r.value for r in Role}
    named: list[tuple[str, list[str]]] = [("default", model.default.required_roles)]
    named.extend((f"routes[{r.path!r}]", r.required_roles) for r in model.routes)
    for where, roles in named:
        unknown = sorted(set(roles) - known)
        if unknown:
            raise ScopeConfigError(f"{where} references unknown roles: {unknown}")


def parse_security_config(raw: dict[str, Any], source: str = "<memory>") -> SecurityConfig:
    if "security" not in raw:
        raise ScopeConfigError(f"Missing top-level 'security' key in config: {source}")

    try:
        model = SecurityConfigModel.model_validate(raw["security"] or {})
    except ValidationError as exc:
        raise ScopeConfigError(f"Invalid security config {source}: {exc}") from exc

    _check_roles(model)
    return SecurityConfig(model)


def load_security_config(path: Path) -> SecurityConfig:
    raw_text = path.read_text(encoding="utf-8")
    raw: dict[str, Any] = yaml.safe_load(raw_text) or {}
    return parse_security_config(raw, source=str(path))
