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

r"""Equivalence expansion of version-range licenses.

An equivalence table maps an expression to the set of expressions it
stands for.  Expansion follows the table until it reaches expressions
with no entry, and returns their disjunction::

    GPL-2.0-or-later
      └─▶ GPL-2.0-only+
            ├─▶ GPL-2.0-only                 (terminal)
            └─▶ GPL-3.0-only+
                  └─▶ GPL-3.0-only           (terminal)

    expand(GPL-2.0-or-later) == GPL-2.0-only OR GPL-3.0-only

A ``WITH`` node whose license expands is distributed over the result::

    GPL-2.0-only+ WITH Classpath-exception-2.0
      == (GPL-2.0-only WITH Classpath-exception-2.0)
         OR (GPL-3.0-only WITH Classpath-exception-2.0)

Tables are consulted in registration order and their entries are
unioned, so a registered overlay augments the defaults.

Usage::

    from licensekit.equivalence import LicenseEquivalence, spdx_equivalence

    equivalence = LicenseEquivalence([spdx_equivalence(registry)])
    equivalence.expand(parse('Apache-1.0+'))
    # Apache-1.0 OR Apache-1.1 OR Apache-2.0
"""

from __future__ import annotations

import tomllib
from collections import deque
from collections.abc import Iterable, Mapping
from pathlib import Path

from licensekit.errors import EquivalenceError, LicenseDataError
from licensekit.expression import (
    Disjunction,
    JustLicense,
    LicenseExpression,
    OrLaterLicense,
    WithException,
    or_,
    ordered,
    with_,
)
from licensekit.logging import get_logger
from licensekit.registry import LicenseRegistry

__all__ = [
    'EquivalenceTable',
    'LicenseEquivalence',
    'spdx_equivalence',
]

log = get_logger('licensekit.equivalence')

EquivalenceTable = Mapping[LicenseExpression, Iterable[LicenseExpression]]

_EQUIVALENCE_TOML = Path(__file__).resolve().parent / 'data' / 'equivalence.toml'


class LicenseEquivalence:
    """Ordered stack of equivalence tables with closure expansion."""

    def __init__(self, tables: Iterable[EquivalenceTable] = ()) -> None:
        """Create an expander over *tables* (consulted in order)."""
        self._tables: list[dict[LicenseExpression, frozenset[LicenseExpression]]] = []
        for table in tables:
            self.register(table)

    def register(self, table: EquivalenceTable) -> None:
        """Append *table*; its entries are unioned with earlier ones."""
        self._tables.append({key: frozenset(values) for key, values in table.items()})

    def __repr__(self) -> str:
        return f'LicenseEquivalence(tables={len(self._tables)})'

    def lookup(self, expr: LicenseExpression) -> frozenset[LicenseExpression]:
        """Return the direct equivalents of *expr* (empty when none).

        Raises:
            EquivalenceError: If the license of a ``WITH`` node expands
                to something that cannot carry an exception.
        """
        found: set[LicenseExpression] = set()
        for table in self._tables:
            found.update(table.get(expr, ()))
        if isinstance(expr, WithException):
            expanded = self.expand(expr.license)
            if expanded != expr.license:
                found.update(self._distribute(expr, expanded))
        return frozenset(found)

    @staticmethod
    def _distribute(expr: WithException, expanded: LicenseExpression) -> list[WithException]:
        if isinstance(expanded, (JustLicense, OrLaterLicense)):
            return [with_(expanded, expr.exception)]
        if isinstance(expanded, Disjunction):
            result = []
            for operand in expanded.operands:
                if not isinstance(operand, (JustLicense, OrLaterLicense)):
                    raise EquivalenceError(
                        f'Unexpected output for expand({expr.license}): {expanded}. '
                        f'Operand {operand} cannot carry exception {expr.exception}'
                    )
                result.append(with_(operand, expr.exception))
            return result
        raise EquivalenceError(
            f'Unexpected output for expand({expr.license}): {expanded}. '
            'Expected a license, an or-later license or a disjunction of them'
        )

    def expand(self, expr: LicenseExpression) -> LicenseExpression:
        """Rewrite *expr* into the disjunction of its terminal equivalents.

        Expressions without a table entry are returned unchanged.  The
        result never has an entry itself, so expansion is idempotent.
        """
        start = self.lookup(expr)
        if not start:
            return expr

        terminals: set[LicenseExpression] = set()
        seen: set[LicenseExpression] = set(start)
        queue = deque(ordered(start))
        while queue:
            current = queue.popleft()
            equivalents = self.lookup(current)
            if not equivalents:
                terminals.add(current)
                continue
            for candidate in ordered(equivalents):
                if candidate not in seen:
                    seen.add(candidate)
                    queue.append(candidate)

        if not terminals:
            log.warning('equivalence_cycle', expression=expr, visited=len(seen))
            return expr
        return or_(*ordered(terminals))


# ---------------------------------------------------------------------------
# Default SPDX table
# ---------------------------------------------------------------------------


def spdx_equivalence(
    registry: LicenseRegistry,
    families_toml: Path | None = None,
) -> dict[LicenseExpression, frozenset[LicenseExpression]]:
    """Build the standard SPDX version table.

    Rules:

    - every registered license ``X``: ``X+`` means ``X``;
    - each version family ``v1 .. vn``: ``vi+`` means ``vi OR v(i+1)+``
      and ``vn+`` means ``vn``;
    - each ``Y-or-later`` id means ``Y-only+``.

    Args:
        registry: Registry providing the standard licenses.
        families_toml: Version data; defaults to the bundled
            ``data/equivalence.toml``.

    Raises:
        LicenseDataError: If the data is malformed or names an unknown
            license.
    """
    path = families_toml or _EQUIVALENCE_TOML
    with path.open('rb') as f:
        data = tomllib.load(f)

    table: dict[LicenseExpression, set[LicenseExpression]] = {}

    def add(key: LicenseExpression, *values: LicenseExpression) -> None:
        table.setdefault(key, set()).update(values)

    for lic in registry:
        add(OrLaterLicense(lic), JustLicense(lic))

    errors: list[str] = []

    families = data.get('family', [])
    if not isinstance(families, list):
        raise LicenseDataError([f'{path.name}: "family" must be an array of tables ([[family]]).'])
    for i, family in enumerate(families):
        versions = family.get('versions') if isinstance(family, dict) else None
        if not isinstance(versions, list) or not all(isinstance(v, str) for v in versions):
            errors.append(f'{path.name}: family[{i}].versions must be a list of strings')
            continue
        missing = [v for v in versions if v not in registry]
        if missing:
            errors.append(f'{path.name}: family[{i}] names unknown licenses: {", ".join(missing)}')
            continue
        licenses = [registry.require_license(v) for v in versions]
        for current, newer in zip(licenses, licenses[1:]):
            add(OrLaterLicense(current), JustLicense(current), OrLaterLicense(newer))
        if licenses:
            add(OrLaterLicense(licenses[-1]), JustLicense(licenses[-1]))

    or_later_ids = data.get('or_later', [])
    if not isinstance(or_later_ids, list):
        raise LicenseDataError([f'{path.name}: "or_later" must be a list of strings'])
    for spdx_id in or_later_ids:
        if not isinstance(spdx_id, str) or not spdx_id.endswith('-or-later'):
            errors.append(f'{path.name}: or_later entry {spdx_id!r} must end with "-or-later"')
            continue
        only_id = spdx_id.removesuffix('-or-later') + '-only'
        if spdx_id not in registry or only_id not in registry:
            errors.append(f'{path.name}: or_later entry {spdx_id!r} needs both {spdx_id} and {only_id}')
            continue
        add(JustLicense(registry.require_license(spdx_id)), OrLaterLicense(registry.require_license(only_id)))

    if errors:
        raise LicenseDataError(errors)
    log.debug('spdx_equivalence_built', entries=len(table))
    return {key: frozenset(values) for key, values in table.items()}
