# Copyright 2026 Google LLC
#
# Licensed under the Apache License, Version 2.0 (the "License");
# you may not use this file except in compliance with the License.
# You may obtain a copy of the License at
#
#     http://www.apache.org/licenses/LICENSE-2.0
#
# Unless required by applicable law or agreed to in writing, software
# distributed under the License is distributed on an "AS IS" BASIS,
# WITHOUT WARRANTIES OR CONDITIONS OF ANY KIND, either express or implied.
# See the License for the specific language governing permissions and
# limitations under the License.
#
# SPDX-License-Identifier: Apache-2.0

r"""Three-valued license compatibility interpreter.

A policy maps license expressions to a verdict.  The interpreter
evaluates arbitrary expressions against it:

    ┌──────────────┬────────────────────────────────────────────────────┐
    │ Input         │ Result                                            │
    ├──────────────┼────────────────────────────────────────────────────┤
    │ None          │ REJECT "License is null"                          │
    │ policy key    │ the key's verdict                                 │
    │ A OR B        │ best choice:   ALLOW > UNKNOWN > REJECT           │
    │ A AND B       │ worst part:    REJECT > UNKNOWN > ALLOW           │
    │ other         │ verdict of the policy key whose expansion         │
    │               │ contains it, else UNKNOWN "No rules found"        │
    └──────────────┴────────────────────────────────────────────────────┘

Expressions are expanded through :class:`LicenseEquivalence` first, so a
policy entry for ``Apache-2.0`` also decides ``Apache-1.0+``.

Reasons are kept as a tuple in canonical operand order.  When verdicts
are mixed, each reason is prefixed with its verdict name
(``"REJECT: LGPL-2.0-only: ..."``) so the report stays readable.

Usage::

    interpreter = CompatibilityInterpreter(equivalence, {
        parse('MIT'): LicenseCompatibility(Verdict.ALLOW),
    })
    interpreter.evaluate(parse('MIT OR GPL-3.0-only')).verdict  # Verdict.ALLOW
"""

from __future__ import annotations

import enum
import functools
from collections.abc import Mapping
from dataclasses import dataclass

from licensekit.errors import PolicyConfigurationError
from licensekit.equivalence import LicenseEquivalence
from licensekit.expression import (
    Conjunction,
    Disjunction,
    LicenseExpression,
    disjunctions,
    ordered,
)
from licensekit.logging import get_logger

__all__ = [
    'CompatibilityInterpreter',
    'LicenseCompatibility',
    'ResolvedCompatibility',
    'Verdict',
]

log = get_logger('licensekit.compat')


class Verdict(str, enum.Enum):
    """Outcome of a compatibility check."""

    ALLOW = 'allow'
    UNKNOWN = 'unknown'
    REJECT = 'reject'


@dataclass(frozen=True)
class LicenseCompatibility:
    """A policy decision for one expression.

    Attributes:
        verdict: The decision.
        reason: Free-text justification; may be empty.
    """

    verdict: Verdict
    reason: str = ''

    def resolve(self, expr: LicenseExpression) -> ResolvedCompatibility:
        """Attribute this decision to *expr*."""
        detail = self.reason or self.verdict.name
        return ResolvedCompatibility(self.verdict, (f'{expr}: {detail}',))


@dataclass(frozen=True)
class ResolvedCompatibility:
    """Result of evaluating an expression.

    Attributes:
        verdict: The combined decision.
        reasons: Human-readable explanations in canonical order.
    """

    verdict: Verdict
    reasons: tuple[str, ...]

    @property
    def allowed(self) -> bool:
        """Whether the verdict is ALLOW."""
        return self.verdict is Verdict.ALLOW

    def __str__(self) -> str:
        return f'{self.verdict.name}: {"; ".join(self.reasons)}'


def _prefixed(result: ResolvedCompatibility) -> tuple[str, ...]:
    return tuple(f'{result.verdict.name}: {reason}' for reason in result.reasons)


def _either(a: ResolvedCompatibility, b: ResolvedCompatibility) -> ResolvedCompatibility:
    """Fold for OR: any allowed choice is enough."""
    if a.verdict is b.verdict:
        return ResolvedCompatibility(a.verdict, a.reasons + b.reasons)
    if a.verdict is Verdict.ALLOW:
        return a
    if b.verdict is Verdict.ALLOW:
        return b
    # REJECT vs UNKNOWN: the unknown choice might still be acceptable.
    return ResolvedCompatibility(Verdict.UNKNOWN, _prefixed(a) + _prefixed(b))


def _both(a: ResolvedCompatibility, b: ResolvedCompatibility) -> ResolvedCompatibility:
    """Fold for AND: every part must be allowed."""
    if a.verdict is b.verdict:
        return ResolvedCompatibility(a.verdict, a.reasons + b.reasons)
    if a.verdict is Verdict.ALLOW:
        return b
    if b.verdict is Verdict.ALLOW:
        return a
    return ResolvedCompatibility(Verdict.REJECT, _prefixed(a) + _prefixed(b))


class CompatibilityInterpreter:
    """Evaluates license expressions against a compatibility policy."""

    def __init__(
        self,
        equivalence: LicenseEquivalence,
        policy: Mapping[LicenseExpression, LicenseCompatibility],
    ) -> None:
        """Index the policy.

        Raises:
            PolicyConfigurationError: If two policy keys expand to
                overlapping disjunctive parts.
        """
        self._equivalence = equivalence
        self._policy = dict(policy)
        self._parts: dict[LicenseExpression, LicenseExpression] = {}
        for key in self._policy:
            for part in disjunctions(equivalence.expand(key)):
                owner = self._parts.get(part)
                if owner is not None:
                    raise PolicyConfigurationError(
                        f'License {part} participates in multiple policy entries: {owner} and {key}. '
                        'Make sure policy entries do not intersect'
                    )
                self._parts[part] = key
        log.debug('interpreter_ready', entries=len(self._policy), parts=len(self._parts))

    def __repr__(self) -> str:
        return f'CompatibilityInterpreter(entries={len(self._policy)})'

    def evaluate(self, expr: LicenseExpression | None) -> ResolvedCompatibility:
        """Return the verdict and reasons for *expr*.

        ``None`` (no license information at all) is rejected.
        """
        if expr is None:
            return ResolvedCompatibility(Verdict.REJECT, ('License is null',))

        decision = self._policy.get(expr)
        if decision is not None:
            return decision.resolve(expr)

        expanded = self._equivalence.expand(expr)
        if isinstance(expanded, (Disjunction, Conjunction)):
            fold = _either if isinstance(expanded, Disjunction) else _both
            return functools.reduce(fold, (self.evaluate(op) for op in expanded.ordered))

        owner = self._parts.get(expanded)
        if owner is not None:
            return self._policy[owner].resolve(expanded)
        return ResolvedCompatibility(Verdict.UNKNOWN, (f'No rules found for {expr}',))
