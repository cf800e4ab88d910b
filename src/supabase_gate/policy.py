"""Route classification: decide whether a request path is protected.

The decision combines four independently sourced predicates in a fixed
order. Later steps may only override earlier ones under the stated
condition:

1. Nothing is protected by default.
2. ``/`` is protected iff ``protect_root`` is set.
3. Built-in deny routes (``/api/logout``, ``/api/recover``) are protected
   unless they are also built-in allowed.
4. User policy: a path is protected when it matches the deny pattern or
   does not match the allow pattern. It never applies to ``/`` and never
   to a built-in allowed path.

Built-in allowed paths are the plugin's own API endpoints for signup,
login and confirm, plus every resolved redirect target. None of them
ever requires a session.

Contradictory allow/deny patterns are not rejected; the order above is
the tie-break.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from typing import Union

from .redirects import RedirectConfig

# ── Constants ─────────────────────────────────────────────────────────

ROOT_PATH = '/'

# Plugin API endpoints that must be reachable without a session.
ALWAYS_ALLOW_PATTERN = re.compile(r'^/api/(signup|login|confirm).*')
# Plugin API endpoints that only make sense with a session.
ALWAYS_DENY_PATTERN = re.compile(r'^/api/(logout|recover).*')
# Front-end pages allowed when no allow pattern is configured.
DEFAULT_ALLOW_PATTERN = re.compile(r'^/(signup|login|confirm)$')

PatternLike = Union[str, re.Pattern]

# Names of the rule that produced the final decision.
RULE_OPEN = 'open'
RULE_ROOT = 'root'
RULE_BUILTIN_DENY = 'builtin_deny'
RULE_USER_POLICY = 'user_policy'

# ── Types ─────────────────────────────────────────────────────────────


def compile_pattern(pattern: PatternLike | None) -> re.Pattern[str] | None:
    if pattern is None or isinstance(pattern, re.Pattern):
        return pattern
    try:
        return re.compile(pattern)
    except re.error as exc:
        raise ValueError(f'invalid route pattern {pattern!r}: {exc}') from exc


@dataclass(frozen=True, slots=True)
class RoutePolicy:
    """Everything :func:`classify` needs besides the path.

    Attributes:
        protect_root: Whether ``/`` requires a session.
        allow_pattern: Replaces :data:`DEFAULT_ALLOW_PATTERN` when set.
        deny_pattern: Paths to protect on top of everything not allowed.
        redirects: Resolved redirect targets, always allowed.
    """

    protect_root: bool = False
    allow_pattern: re.Pattern[str] | None = None
    deny_pattern: re.Pattern[str] | None = None
    redirects: RedirectConfig = field(default_factory=RedirectConfig)

    def __post_init__(self) -> None:
        # Accept plain strings and compile them once.
        object.__setattr__(self, 'allow_pattern', compile_pattern(self.allow_pattern))
        object.__setattr__(self, 'deny_pattern', compile_pattern(self.deny_pattern))


@dataclass(frozen=True, slots=True)
class ClassificationResult:
    """Outcome of :func:`classify`.

    ``rule`` names the step that set the final value, ``open`` when no
    step protected the path.
    """

    is_protected: bool
    path: str
    rule: str = RULE_OPEN

    def __bool__(self) -> bool:
        return self.is_protected


# ── Matching ─────────────────────────────────────────────────────────


def _matches(pattern: re.Pattern[str], path: str) -> bool:
    """Search ``pattern`` in ``path``. An empty match is no match."""
    match = pattern.search(path)
    return match is not None and match.group(0) != ''


def matches_redirect(path: str, redirects: RedirectConfig) -> bool:
    return any(path.startswith(target) for target in redirects.paths())


# ── Classification ───────────────────────────────────────────────────


def classify(path: str, policy: RoutePolicy) -> ClassificationResult:
    """Classify ``path`` as protected or open under ``policy``."""
    is_protected = False
    rule = RULE_OPEN

    is_root = path == ROOT_PATH
    if is_root and policy.protect_root:
        is_protected = True
        rule = RULE_ROOT

    builtin_allow = (
        _matches(ALWAYS_ALLOW_PATTERN, path)
        or matches_redirect(path, policy.redirects)
    )
    builtin_deny = _matches(ALWAYS_DENY_PATTERN, path)

    if builtin_deny and not builtin_allow:
        is_protected = True
        rule = RULE_BUILTIN_DENY

    if policy.allow_pattern is not None:
        user_allow = _matches(policy.allow_pattern, path)
    else:
        user_allow = _matches(DEFAULT_ALLOW_PATTERN, path)

    if policy.deny_pattern is not None:
        user_deny = _matches(policy.deny_pattern, path)
    else:
        user_deny = False

    protected_by_user = user_deny or not user_allow

    if protected_by_user and not is_root and not builtin_allow:
        is_protected = protected_by_user
        rule = RULE_USER_POLICY

    return ClassificationResult(is_protected=is_protected, path=path, rule=rule)


def is_protected(path: str, policy: RoutePolicy) -> bool:
    return classify(path, policy).is_protected
