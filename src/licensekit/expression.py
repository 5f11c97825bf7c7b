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

r"""License expression model.

An expression is an immutable tree over licenses and exceptions.  The
node kinds form a closed union (:data:`LicenseExpression`); every
consumer dispatches over it exhaustively.

Key Concepts (ELI5)::

    ┌─────────────────────┬──────────────────────────────────────────────┐
    │ Node                 │ Plain-English                                │
    ├─────────────────────┼──────────────────────────────────────────────┤
    │ JustLicense          │ Exactly this license version.               │
    ├─────────────────────┼──────────────────────────────────────────────┤
    │ OrLaterLicense       │ This version or any later one (``X+``).     │
    ├─────────────────────┼──────────────────────────────────────────────┤
    │ WithException        │ A (possibly or-later) license plus an       │
    │                      │ exception carve-out.  Never compound.       │
    ├─────────────────────┼──────────────────────────────────────────────┤
    │ Conjunction (AND)    │ Must comply with every operand.             │
    ├─────────────────────┼──────────────────────────────────────────────┤
    │ Disjunction (OR)     │ May pick any operand.                       │
    ├─────────────────────┼──────────────────────────────────────────────┤
    │ NONE / NOASSERTION   │ No license / nothing is known.              │
    └─────────────────────┴──────────────────────────────────────────────┘

Set nodes hold a :class:`frozenset`, so ``MIT OR GPL`` equals
``GPL OR MIT``.  Printing uses :attr:`Conjunction.ordered`, which sorts
by :func:`weight` and then by string form, so the text is deterministic.

Usage::

    from licensekit.expression import and_, or_, or_later, with_

    expr = or_(mit, with_(or_later(gpl2), classpath))
    str(expr)  # 'MIT OR GPL-2.0-only+ WITH Classpath-exception-2.0'
"""

from __future__ import annotations

import functools
from collections.abc import Iterable
from dataclasses import dataclass
from typing import assert_never

from licensekit._types import (
    License,
    LicenseException,
    SimpleLicense,
    StandardLicense,
)

__all__ = [
    'NOASSERTION',
    'NONE',
    'Conjunction',
    'Disjunction',
    'JustLicense',
    'LicenseExpression',
    'OrLaterLicense',
    'Sentinel',
    'SimpleExpression',
    'WithException',
    'and_',
    'conjunctions',
    'disjunctions',
    'just',
    'license_ids',
    'or_',
    'or_later',
    'ordered',
    'sort_key',
    'weight',
    'with_',
]


class _Operators:
    """``&`` / ``|`` sugar shared by all node kinds."""

    def __and__(self, other: LicenseExpression | License) -> LicenseExpression:
        return and_(self, other)  # type: ignore[arg-type]

    def __or__(self, other: LicenseExpression | License) -> LicenseExpression:
        return or_(self, other)  # type: ignore[arg-type]


@dataclass(frozen=True)
class Sentinel(_Operators):
    """``NONE`` or ``NOASSERTION``."""

    name: str

    def __str__(self) -> str:
        return self.name


NONE = Sentinel('NONE')
NOASSERTION = Sentinel('NOASSERTION')


@dataclass(frozen=True)
class JustLicense(_Operators):
    """A single license, exact version."""

    license: License

    def __str__(self) -> str:
        return str(self.license)


@dataclass(frozen=True)
class OrLaterLicense(_Operators):
    """The license or any later version (``X+``)."""

    license: License

    def __str__(self) -> str:
        return f'{self.license}+'


@dataclass(frozen=True)
class WithException(_Operators):
    """A simple license expression with an exception.

    Attributes:
        license: The base license; a :class:`JustLicense` or an
            :class:`OrLaterLicense`, never a compound expression.
        exception: The exception applied to the license.
    """

    license: SimpleExpression
    exception: LicenseException

    def __post_init__(self) -> None:
        if not isinstance(self.license, (JustLicense, OrLaterLicense)):
            raise TypeError(
                f'WITH requires a simple license on the left, got {type(self.license).__name__}: [{self.license}]'
            )

    def __str__(self) -> str:
        return f'{self.license} WITH {self.exception}'


def _flatten(kind: type, operands: Iterable[LicenseExpression]) -> frozenset[LicenseExpression]:
    result: set[LicenseExpression] = set()
    for op in operands:
        if isinstance(op, kind):
            result.update(op.operands)  # type: ignore[attr-defined]
        else:
            result.add(op)
    return frozenset(result)


@dataclass(frozen=True)
class Conjunction(_Operators):
    """Logical AND over an unordered set of at least two operands."""

    operands: frozenset[LicenseExpression]

    def __post_init__(self) -> None:
        flat = _flatten(Conjunction, self.operands)
        if len(flat) < 2:
            raise ValueError(f'Conjunction needs at least two distinct operands, got {len(flat)}')
        object.__setattr__(self, 'operands', flat)

    @functools.cached_property
    def ordered(self) -> tuple[LicenseExpression, ...]:
        """Operands in canonical display order."""
        return ordered(self.operands)

    def __str__(self) -> str:
        return ' AND '.join(f'({op})' if isinstance(op, Disjunction) else str(op) for op in self.ordered)


@dataclass(frozen=True)
class Disjunction(_Operators):
    """Logical OR over an unordered set of at least two operands."""

    operands: frozenset[LicenseExpression]

    def __post_init__(self) -> None:
        flat = _flatten(Disjunction, self.operands)
        if len(flat) < 2:
            raise ValueError(f'Disjunction needs at least two distinct operands, got {len(flat)}')
        object.__setattr__(self, 'operands', flat)

    @functools.cached_property
    def ordered(self) -> tuple[LicenseExpression, ...]:
        """Operands in canonical display order."""
        return ordered(self.operands)

    def __str__(self) -> str:
        return ' OR '.join(str(op) for op in self.ordered)


# Union of all expression node types.
LicenseExpression = Sentinel | JustLicense | OrLaterLicense | WithException | Conjunction | Disjunction

# Node types allowed on the left of WITH.
SimpleExpression = JustLicense | OrLaterLicense


# ---------------------------------------------------------------------------
# Ordering
# ---------------------------------------------------------------------------


def weight(expr: LicenseExpression) -> int:
    """Return the depth-like complexity of *expr*, used for display order.

    Sentinels weigh 0, a plain license 1, an or-later license 2; a WITH
    node weighs one more than its license and a set node one more than
    its heaviest operand.
    """
    if isinstance(expr, Sentinel):
        return 0
    if isinstance(expr, JustLicense):
        return 1
    if isinstance(expr, OrLaterLicense):
        return 2
    if isinstance(expr, WithException):
        return weight(expr.license) + 1
    if isinstance(expr, (Conjunction, Disjunction)):
        return max(weight(op) for op in expr.operands) + 1
    assert_never(expr)


def sort_key(expr: LicenseExpression) -> tuple[int, str]:
    """Canonical sort key: weight first, then the printed form."""
    return weight(expr), str(expr)


def ordered(exprs: Iterable[LicenseExpression]) -> tuple[LicenseExpression, ...]:
    """Return *exprs* sorted in canonical display order."""
    return tuple(sorted(exprs, key=sort_key))


# ---------------------------------------------------------------------------
# Construction helpers
# ---------------------------------------------------------------------------


def _as_expression(value: LicenseExpression | License) -> LicenseExpression:
    if isinstance(value, (StandardLicense, SimpleLicense)):
        return JustLicense(value)
    return value


def conjunctions(expr: LicenseExpression) -> frozenset[LicenseExpression]:
    """Return the AND operands of *expr* (``{expr}`` for other nodes)."""
    if isinstance(expr, Conjunction):
        return expr.operands
    return frozenset({expr})


def disjunctions(expr: LicenseExpression) -> frozenset[LicenseExpression]:
    """Return the OR operands of *expr* (``{expr}`` for other nodes)."""
    if isinstance(expr, Disjunction):
        return expr.operands
    return frozenset({expr})


def just(license: License) -> JustLicense:
    """Wrap *license* as an exact-version expression."""
    return JustLicense(license)


def or_later(value: License | JustLicense) -> OrLaterLicense:
    """Return the or-later form of a license or a :class:`JustLicense`."""
    if isinstance(value, JustLicense):
        return OrLaterLicense(value.license)
    return OrLaterLicense(value)


def with_(value: License | SimpleExpression, exception: LicenseException) -> WithException:
    """Attach *exception* to a license or simple license expression."""
    license = _as_expression(value)
    return WithException(license, exception)  # type: ignore[arg-type]


def and_(*operands: LicenseExpression | License) -> LicenseExpression:
    """Combine operands with AND.

    Nested conjunctions are merged, duplicates collapse and a single
    remaining operand is returned as is.

    Raises:
        ValueError: If no operand is given.
    """
    ops: set[LicenseExpression] = set()
    for value in operands:
        ops.update(conjunctions(_as_expression(value)))
    if not ops:
        raise ValueError('and_() requires at least one operand')
    if len(ops) == 1:
        return next(iter(ops))
    return Conjunction(frozenset(ops))


def or_(*operands: LicenseExpression | License) -> LicenseExpression:
    """Combine operands with OR.

    Nested disjunctions are merged, duplicates collapse and a single
    remaining operand is returned as is.

    Raises:
        ValueError: If no operand is given.
    """
    ops: set[LicenseExpression] = set()
    for value in operands:
        ops.update(disjunctions(_as_expression(value)))
    if not ops:
        raise ValueError('or_() requires at least one operand')
    if len(ops) == 1:
        return next(iter(ops))
    return Disjunction(frozenset(ops))


def license_ids(expr: LicenseExpression) -> set[str]:
    """Collect the printed license names used in *expr*.

    Standard licenses contribute their id, simple licenses their title.
    Exceptions and sentinels are not included.
    """
    ids: set[str] = set()
    _collect_ids(expr, ids)
    return ids


def _collect_ids(expr: LicenseExpression, acc: set[str]) -> None:
    if isinstance(expr, Sentinel):
        return
    if isinstance(expr, (JustLicense, OrLaterLicense)):
        lic = expr.license
        acc.add(lic.id if isinstance(lic, StandardLicense) else lic.title)
    elif isinstance(expr, WithException):
        _collect_ids(expr.license, acc)
    elif isinstance(expr, (Conjunction, Disjunction)):
        for op in expr.operands:
            _collect_ids(op, acc)
    else:
        assert_never(expr)
