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

"""Compatibility policy: which licenses are allowed, unknown or rejected.

A policy is an ordered mapping from license expression to
:class:`~licensekit.compat.LicenseCompatibility`.  Rules are usually
written in TOML::

    [[policy]]
    verdict = "allow"
    reason = "ISSUE-2: Apache Category A licenses are ok"
    licenses = ["Apache-2.0", "MIT", "BSD-3-Clause"]

    [[policy]]
    verdict = "reject"
    reason = "See ISSUE-21"
    licenses = ["LGPL-2.0-only OR LGPL-2.1-only"]

Each entry in ``licenses`` is a license expression and becomes its own
policy key.
"""

from __future__ import annotations

import tomllib
from collections.abc import Iterable, Iterator, Mapping, Sequence
from dataclasses import dataclass
from pathlib import Path
from typing import Any

from licensekit.compat import LicenseCompatibility, Verdict
from licensekit.errors import ParseError, PolicyConfigurationError
from licensekit.expression import LicenseExpression
from licensekit.parser import LicenseExpressionParser

__all__ = [
    'CompatibilityPolicy',
    'PolicyRule',
    'parse_verdict',
    'rules_from_data',
]

_VERDICTS = {v.value: v for v in Verdict}


def parse_verdict(value: str) -> Verdict:
    """Parse ``allow`` / ``unknown`` / ``reject`` (any case).

    Raises:
        ValueError: For any other value.
    """
    verdict = _VERDICTS.get(value.strip().lower())
    if verdict is None:
        raise ValueError(f'{value!r} is not a valid verdict. Must be one of: {", ".join(_VERDICTS)}')
    return verdict


@dataclass(frozen=True)
class PolicyRule:
    """One ``[[policy]]`` entry before parsing.

    Attributes:
        licenses: License expressions (as text) the rule applies to.
        verdict: The decision for every listed expression.
        reason: Free-text justification.
    """

    licenses: tuple[str, ...]
    verdict: Verdict
    reason: str = ''


def rules_from_data(entries: Any, where: str = 'policy') -> tuple[list[PolicyRule], list[str]]:  # noqa: ANN401
    """Validate raw ``[[policy]]`` tables.

    Returns the parsed rules and the collected error strings.
    """
    if not isinstance(entries, list):
        return [], [f'"{where}" must be an array of tables ([[{where}]]).']
    rules: list[PolicyRule] = []
    errors: list[str] = []
    for i, entry in enumerate(entries):
        if not isinstance(entry, dict):
            errors.append(f'{where}[{i}]: expected a table, got {type(entry).__name__}')
            continue
        unknown = sorted(set(entry) - {'verdict', 'reason', 'licenses'})
        if unknown:
            errors.append(f'{where}[{i}]: unknown keys: {", ".join(unknown)}')
        raw_verdict = entry.get('verdict')
        if not isinstance(raw_verdict, str):
            errors.append(f'{where}[{i}]: missing required string field "verdict"')
            continue
        try:
            verdict = parse_verdict(raw_verdict)
        except ValueError as exc:
            errors.append(f'{where}[{i}].verdict: {exc}')
            continue
        reason = entry.get('reason', '')
        if not isinstance(reason, str):
            errors.append(f'{where}[{i}].reason: expected string, got {type(reason).__name__}')
            continue
        licenses = entry.get('licenses')
        if not isinstance(licenses, list) or not licenses or not all(isinstance(x, str) for x in licenses):
            errors.append(f'{where}[{i}].licenses: expected a non-empty list of strings')
            continue
        rules.append(PolicyRule(tuple(licenses), verdict, reason))
    return rules, errors


class CompatibilityPolicy(Mapping[LicenseExpression, LicenseCompatibility]):
    """Ordered, read-only mapping of policy decisions."""

    def __init__(self) -> None:
        """Create an empty policy."""
        self._entries: dict[LicenseExpression, LicenseCompatibility] = {}

    def register(
        self,
        licenses: LicenseExpression | Iterable[LicenseExpression],
        verdict: Verdict,
        reason: str = '',
    ) -> None:
        """Add a decision for one or more expressions.

        Raises:
            PolicyConfigurationError: If an expression already has a
                decision.
        """
        exprs = [licenses] if not isinstance(licenses, Iterable) else list(licenses)
        decision = LicenseCompatibility(verdict, reason)
        for expr in exprs:
            existing = self._entries.get(expr)
            if existing is not None:
                raise PolicyConfigurationError(
                    f'License {expr} is listed twice in the policy: {existing.verdict.name} and {verdict.name}'
                )
            self._entries[expr] = decision

    @classmethod
    def from_rules(cls, rules: Sequence[PolicyRule], parser: LicenseExpressionParser) -> CompatibilityPolicy:
        """Parse every rule's expressions into a policy.

        Raises:
            PolicyConfigurationError: If an expression does not parse or
                is listed twice.
        """
        policy = cls()
        for rule in rules:
            exprs = []
            for text in rule.licenses:
                try:
                    exprs.append(parser.parse(text))
                except ParseError as exc:
                    raise PolicyConfigurationError(f'Invalid license expression in policy: {exc}') from exc
            policy.register(exprs, rule.verdict, rule.reason)
        return policy

    @classmethod
    def from_toml(cls, path: Path, parser: LicenseExpressionParser) -> CompatibilityPolicy:
        """Load the ``[[policy]]`` array of a TOML file.

        Raises:
            PolicyConfigurationError: If the file or an entry is invalid.
        """
        try:
            with path.open('rb') as f:
                data = tomllib.load(f)
        except (OSError, tomllib.TOMLDecodeError) as exc:
            raise PolicyConfigurationError(f'Cannot read policy file {path}: {exc}') from exc
        rules, errors = rules_from_data(data.get('policy', []))
        if errors:
            raise PolicyConfigurationError('\n'.join(errors))
        return cls.from_rules(rules, parser)

    def __getitem__(self, key: LicenseExpression) -> LicenseCompatibility:
        return self._entries[key]

    def __iter__(self) -> Iterator[LicenseExpression]:
        return iter(self._entries)

    def __len__(self) -> int:
        return len(self._entries)

    def __repr__(self) -> str:
        return f'CompatibilityPolicy({len(self._entries)} entries)'
