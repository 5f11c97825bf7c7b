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

"""Loading and editing ``licensekit.toml``.

Reading uses :mod:`tomllib`; every problem in the file is collected and
raised together as a :class:`~licensekit.errors.ConfigError`.  Writing
uses ``tomlkit`` so that comments and formatting written by hand
survive :func:`add_policy_rule`.

Example file::

    similarity_threshold = 42
    candidate_limit = 20
    licenses_toml = "extra-licenses.toml"

    [[equivalence]]
    from = "Apache-1.0+"
    to = ["Apache-2.0"]

    [[policy]]
    verdict = "allow"
    reason = "Category A"
    licenses = ["MIT", "Apache-2.0"]
"""

from __future__ import annotations

import tomllib
from dataclasses import dataclass
from pathlib import Path
from typing import Any

import tomlkit
import tomlkit.exceptions
import tomlkit.items

from licensekit.errors import ConfigError
from licensekit.logging import get_logger
from licensekit.normalizer import DEFAULT_CANDIDATE_LIMIT, DEFAULT_SIMILARITY_THRESHOLD
from licensekit.policy import PolicyRule, rules_from_data

__all__ = [
    'CONFIG_FILENAME',
    'EquivalenceRule',
    'LicenseKitConfig',
    'add_policy_rule',
    'load_config',
    'write_default_config',
]

log = get_logger('licensekit.config')

CONFIG_FILENAME = 'licensekit.toml'

_KNOWN_KEYS = frozenset({'similarity_threshold', 'candidate_limit', 'licenses_toml', 'equivalence', 'policy'})

_DEFAULT_CONFIG = """\
# licensekit configuration.

# Minimum title similarity (0-100) before a free-text license name is
# mapped to a standard identifier.
similarity_threshold = 42

# Number of title guesses checked against the license URL.
candidate_limit = 20

# Extra license definitions, relative to this file:
# licenses_toml = "extra-licenses.toml"

# Extra equivalences, added to the SPDX version rules:
# [[equivalence]]
# from = "Apache-1.0+"
# to = ["Apache-2.0"]

[[policy]]
verdict = "allow"
reason = "Permissive license"
licenses = ["Apache-2.0", "MIT", "BSD-2-Clause", "BSD-3-Clause", "ISC"]

[[policy]]
verdict = "allow"
reason = "Public domain is OK"
licenses = ["CC0-1.0"]
"""


@dataclass(frozen=True)
class EquivalenceRule:
    """One ``[[equivalence]]`` entry: *source* stands for any of *targets*."""

    source: str
    targets: tuple[str, ...]


@dataclass(frozen=True)
class LicenseKitConfig:
    """Validated configuration.

    Attributes:
        similarity_threshold: Minimum guess score, 0 to 100.
        candidate_limit: Title guesses checked against URLs.
        licenses_toml: Optional user license tables (absolute path).
        equivalence: Extra equivalence rules.
        policy: Compatibility policy rules.
        path: File the configuration was read from, if any.
    """

    similarity_threshold: float = DEFAULT_SIMILARITY_THRESHOLD
    candidate_limit: int = DEFAULT_CANDIDATE_LIMIT
    licenses_toml: Path | None = None
    equivalence: tuple[EquivalenceRule, ...] = ()
    policy: tuple[PolicyRule, ...] = ()
    path: Path | None = None


def _equivalence_rules(entries: Any) -> tuple[list[EquivalenceRule], list[str]]:  # noqa: ANN401
    if not isinstance(entries, list):
        return [], ['"equivalence" must be an array of tables ([[equivalence]]).']
    rules: list[EquivalenceRule] = []
    errors: list[str] = []
    for i, entry in enumerate(entries):
        if not isinstance(entry, dict):
            errors.append(f'equivalence[{i}]: expected a table, got {type(entry).__name__}')
            continue
        source = entry.get('from')
        if not isinstance(source, str) or not source.strip():
            errors.append(f'equivalence[{i}]: missing required string field "from"')
            continue
        targets = entry.get('to')
        if not isinstance(targets, list) or not targets or not all(isinstance(t, str) for t in targets):
            errors.append(f'equivalence[{i}].to: expected a non-empty list of strings')
            continue
        rules.append(EquivalenceRule(source, tuple(targets)))
    return rules, errors


def load_config(path: Path) -> LicenseKitConfig:
    """Read and validate a configuration file.

    Raises:
        ConfigError: If the file cannot be read or has invalid values.
    """
    try:
        with path.open('rb') as f:
            data = tomllib.load(f)
    except FileNotFoundError as exc:
        raise ConfigError([f'{path}: file not found']) from exc
    except tomllib.TOMLDecodeError as exc:
        raise ConfigError([f'{path}: invalid TOML: {exc}']) from exc

    errors: list[str] = []
    unknown = sorted(set(data) - _KNOWN_KEYS)
    if unknown:
        errors.append(f'unknown keys: {", ".join(unknown)}')

    threshold = data.get('similarity_threshold', DEFAULT_SIMILARITY_THRESHOLD)
    if isinstance(threshold, bool) or not isinstance(threshold, (int, float)):
        errors.append(f'similarity_threshold: expected a number, got {type(threshold).__name__}')
        threshold = DEFAULT_SIMILARITY_THRESHOLD
    elif not 0 <= threshold <= 100:
        errors.append(f'similarity_threshold: {threshold} is outside 0..100')

    limit = data.get('candidate_limit', DEFAULT_CANDIDATE_LIMIT)
    if isinstance(limit, bool) or not isinstance(limit, int):
        errors.append(f'candidate_limit: expected an integer, got {type(limit).__name__}')
        limit = DEFAULT_CANDIDATE_LIMIT
    elif limit < 1:
        errors.append(f'candidate_limit: must be at least 1, got {limit}')

    licenses_toml: Path | None = None
    raw_licenses = data.get('licenses_toml')
    if raw_licenses is not None:
        if not isinstance(raw_licenses, str):
            errors.append(f'licenses_toml: expected a string, got {type(raw_licenses).__name__}')
        else:
            licenses_toml = (path.parent / raw_licenses).resolve()
            if not licenses_toml.is_file():
                errors.append(f'licenses_toml: {licenses_toml} does not exist')

    equivalence, eq_errors = _equivalence_rules(data.get('equivalence', []))
    errors.extend(eq_errors)
    policy, policy_errors = rules_from_data(data.get('policy', []))
    errors.extend(policy_errors)

    if errors:
        raise ConfigError(errors)
    log.debug('config_loaded', path=str(path), policy_rules=len(policy), equivalence_rules=len(equivalence))
    return LicenseKitConfig(
        similarity_threshold=float(threshold),
        candidate_limit=limit,
        licenses_toml=licenses_toml,
        equivalence=tuple(equivalence),
        policy=tuple(policy),
        path=path,
    )


def write_default_config(path: Path, *, force: bool = False) -> None:
    """Write a commented starter configuration to *path*.

    Raises:
        ConfigError: If the file exists and *force* is false.
    """
    if path.exists() and not force:
        raise ConfigError([f'{path} already exists (use --force to overwrite)'])
    path.write_text(_DEFAULT_CONFIG, encoding='utf-8')
    log.info('config_written', path=str(path))


def _ensure_policy_array(doc: tomlkit.TOMLDocument) -> tomlkit.items.AoT:
    """Ensure ``[[policy]]`` exists in the TOML document.

    Returns:
        The array of policy tables (created if absent).
    """
    if 'policy' not in doc:
        doc.add(tomlkit.nl())
        doc.add('policy', tomlkit.aot())
    return doc['policy']  # type: ignore[return-value]  # tomlkit


def add_policy_rule(path: Path, rule: PolicyRule) -> None:
    """Append *rule* as a ``[[policy]]`` entry, keeping existing comments.

    Raises:
        ConfigError: If the file cannot be parsed or ``policy`` is not an
            array of tables.
    """
    text = path.read_text(encoding='utf-8') if path.exists() else ''
    try:
        doc = tomlkit.parse(text)
    except tomlkit.exceptions.ParseError as exc:
        raise ConfigError([f'{path}: invalid TOML: {exc}']) from exc
    policies = _ensure_policy_array(doc)
    if not isinstance(policies, tomlkit.items.AoT):
        raise ConfigError([f'{path}: "policy" must be an array of tables ([[policy]]).'])

    entry = tomlkit.table()
    entry.add('verdict', rule.verdict.value)
    if rule.reason:
        entry.add('reason', rule.reason)
    licenses = tomlkit.array()
    licenses.extend(rule.licenses)
    entry.add('licenses', licenses)
    policies.append(entry)

    path.write_text(tomlkit.dumps(doc), encoding='utf-8')
    log.info('policy_rule_added', path=str(path), verdict=rule.verdict.value, licenses=list(rule.licenses))
