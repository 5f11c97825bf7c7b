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

"""Standard license and exception registry loaded from TOML data.

The bundled tables live in ``licensekit/data/``:

- ``licenses.toml``: one table per SPDX license id.
- ``exceptions.toml``: one table per SPDX exception id.

Each table has a ``name`` (full title) and an optional ``see_also``
list of reference URLs::

    ["Apache-2.0"]
    name = "Apache License 2.0"
    see_also = ["http://www.apache.org/licenses/LICENSE-2.0"]

A user file can add or override entries::

    [licenses."LicenseRef-Acme-1.0"]
    name = "Acme Corporate License 1.0"
    see_also = ["https://acme.example/license"]

    [exceptions."Acme-linking-exception"]
    name = "Acme Linking Exception"

Usage::

    from licensekit.registry import LicenseRegistry

    registry = LicenseRegistry.load()
    registry.find_license('MIT')  # StandardLicense('MIT', ...)
    registry.parse_license('My License')  # SimpleLicense('My License')
"""

from __future__ import annotations

import functools
import tomllib
from collections.abc import Iterator, Mapping
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

from licensekit._types import (
    License,
    LicenseException,
    SimpleException,
    SimpleLicense,
    StandardException,
    StandardLicense,
)
from licensekit.errors import LicenseDataError
from licensekit.logging import get_logger

__all__ = [
    'LicenseRegistry',
    'load_default_registry',
    'uris_look_the_same',
]

log = get_logger('licensekit.registry')

_DATA_DIR = Path(__file__).resolve().parent / 'data'
_LICENSES_TOML = _DATA_DIR / 'licenses.toml'
_EXCEPTIONS_TOML = _DATA_DIR / 'exceptions.toml'


def _strip_scheme(uri: str) -> str:
    """Return the scheme-specific part (``//host/path``) of *uri*."""
    scheme, sep, rest = uri.partition(':')
    if sep and scheme and '/' not in scheme:
        return rest
    return uri


def _canonical_uri(ssp: str) -> str:
    ssp = ssp.removesuffix('.txt').removesuffix('.md')
    if ssp.startswith('//www.'):
        ssp = '//' + ssp[len('//www.') :]
    return ssp


def uris_look_the_same(a: str, b: str) -> bool:
    """Compare URIs ignoring scheme, ``www.`` and ``.txt``/``.md`` suffixes."""
    ssp_a, ssp_b = _strip_scheme(a), _strip_scheme(b)
    return ssp_a == ssp_b or _canonical_uri(ssp_a) == _canonical_uri(ssp_b)


def _read_toml(path: Path) -> dict[str, Any]:
    try:
        with path.open('rb') as f:
            return tomllib.load(f)
    except tomllib.TOMLDecodeError as exc:
        raise LicenseDataError([f'{path}: invalid TOML: {exc}']) from exc


def _parse_entries(data: Mapping[str, Any], where: str) -> tuple[dict[str, tuple[str, tuple[str, ...]]], list[str]]:
    """Validate ``id -> {name, see_also}`` tables.

    Returns the parsed ``id -> (name, uris)`` entries and the collected
    error strings.
    """
    entries: dict[str, tuple[str, tuple[str, ...]]] = {}
    errors: list[str] = []
    for spdx_id, info in data.items():
        if not isinstance(info, dict):
            errors.append(f'{where}[{spdx_id}]: expected a table, got {type(info).__name__}')
            continue
        if not spdx_id.strip() or any(c.isspace() for c in spdx_id):
            errors.append(f'{where}[{spdx_id!r}]: identifier must be non-empty and contain no whitespace')
            continue
        name = info.get('name')
        if name is None:
            errors.append(f'{where}[{spdx_id}]: missing required field "name"')
            continue
        if not isinstance(name, str):
            errors.append(f'{where}[{spdx_id}].name: expected string, got {type(name).__name__}')
            continue
        see_also = info.get('see_also', [])
        if not isinstance(see_also, list):
            errors.append(f'{where}[{spdx_id}].see_also: expected list, got {type(see_also).__name__}')
            continue
        if not all(isinstance(u, str) for u in see_also):
            errors.append(f'{where}[{spdx_id}].see_also: all entries must be strings')
            continue
        entries[spdx_id] = (name, tuple(see_also))
    return entries, errors


@dataclass
class LicenseRegistry:
    """Known standard licenses and exceptions.

    Attributes:
        licenses: Mapping from license id to :class:`StandardLicense`.
        exceptions: Mapping from exception id to :class:`StandardException`.
    """

    licenses: dict[str, StandardLicense] = field(default_factory=dict)
    exceptions: dict[str, StandardException] = field(default_factory=dict)

    # ── Loading ──────────────────────────────────────────────────────

    @classmethod
    def load(
        cls,
        *,
        licenses_toml: Path | None = None,
        exceptions_toml: Path | None = None,
        user_toml: Path | None = None,
    ) -> LicenseRegistry:
        """Load the registry from TOML data files.

        Args:
            licenses_toml: Path to the license table TOML.
                Defaults to the built-in ``data/licenses.toml``.
            exceptions_toml: Path to the exception table TOML.
                Defaults to the built-in ``data/exceptions.toml``.
            user_toml: Optional user-provided TOML with ``[licenses]``
                and/or ``[exceptions]`` tables merged on top.

        Returns:
            A validated :class:`LicenseRegistry`.

        Raises:
            LicenseDataError: If any table fails validation.
        """
        registry = cls()

        lic_path = licenses_toml or _LICENSES_TOML
        entries, errors = _parse_entries(_read_toml(lic_path), lic_path.name)
        for spdx_id, (name, uris) in entries.items():
            registry.licenses[spdx_id] = StandardLicense(spdx_id, name, uris)

        exc_path = exceptions_toml or _EXCEPTIONS_TOML
        entries, exc_errors = _parse_entries(_read_toml(exc_path), exc_path.name)
        errors.extend(exc_errors)
        for spdx_id, (name, uris) in entries.items():
            registry.exceptions[spdx_id] = StandardException(spdx_id, name, uris)

        if user_toml is not None:
            errors.extend(registry._merge_user_tables(user_toml))  # noqa: SLF001

        if errors:
            raise LicenseDataError(errors)
        registry.validate()
        log.debug(
            'registry_loaded',
            licenses=len(registry.licenses),
            exceptions=len(registry.exceptions),
        )
        return registry

    def _merge_user_tables(self, path: Path) -> list[str]:
        """Merge ``[licenses]`` and ``[exceptions]`` from a user file."""
        if not path.is_file():
            return [f'{path}: user license file does not exist']
        data = _read_toml(path)
        errors: list[str] = []
        unknown = sorted(set(data) - {'licenses', 'exceptions'})
        if unknown:
            errors.append(f'{path.name}: unknown top-level keys: {", ".join(unknown)}')

        licenses = data.get('licenses', {})
        exceptions = data.get('exceptions', {})
        if not isinstance(licenses, dict) or not isinstance(exceptions, dict):
            errors.append(f'{path.name}: "licenses" and "exceptions" must be tables')
            return errors

        entries, lic_errors = _parse_entries(licenses, f'{path.name}:licenses')
        errors.extend(lic_errors)
        for spdx_id, (name, uris) in entries.items():
            self.licenses[spdx_id] = StandardLicense(spdx_id, name, uris, provider_id='user')

        entries, exc_errors = _parse_entries(exceptions, f'{path.name}:exceptions')
        errors.extend(exc_errors)
        for spdx_id, (name, uris) in entries.items():
            self.exceptions[spdx_id] = StandardException(spdx_id, name, uris, provider_id='user')
        return errors

    def validate(self) -> None:
        """Check registry-wide consistency.

        Raises:
            LicenseDataError: If an id is used both as a license and an
                exception, or a title is empty.
        """
        errors: list[str] = []
        for spdx_id in sorted(self.licenses.keys() & self.exceptions.keys()):
            errors.append(f'{spdx_id}: defined both as a license and as an exception')
        for spdx_id, lic in self.licenses.items():
            if not lic.title.strip():
                errors.append(f'{spdx_id}: license name must not be empty')
        for spdx_id, exc in self.exceptions.items():
            if not exc.title.strip():
                errors.append(f'{spdx_id}: exception name must not be empty')
        if errors:
            raise LicenseDataError(errors)

    # ── Queries ──────────────────────────────────────────────────────

    def find_license(self, spdx_id: str) -> StandardLicense | None:
        """Return the standard license with *spdx_id*, or ``None``."""
        return self.licenses.get(spdx_id)

    def find_exception(self, spdx_id: str) -> StandardException | None:
        """Return the standard exception with *spdx_id*, or ``None``."""
        return self.exceptions.get(spdx_id)

    def find_by_uri(self, uri: str) -> StandardLicense | None:
        """Return the first license whose reference URL matches *uri*.

        URLs are compared with :func:`uris_look_the_same`, so
        ``https://www.apache.org/licenses/LICENSE-2.0.txt`` finds
        Apache-2.0.
        """
        for lic in self.licenses.values():
            if any(uris_look_the_same(uri, ref) for ref in lic.uris):
                return lic
        return None

    def require_license(self, spdx_id: str) -> StandardLicense:
        """Return the standard license with *spdx_id*.

        Raises:
            LicenseDataError: If the id is not registered.
        """
        lic = self.licenses.get(spdx_id)
        if lic is None:
            raise LicenseDataError([f'{spdx_id}: unknown license identifier'])
        return lic

    def parse_license(self, literal: str) -> License:
        """Turn an expression literal into a standard or simple license."""
        return self.licenses.get(literal) or SimpleLicense(literal)

    def parse_exception(self, literal: str) -> LicenseException:
        """Turn an expression literal into a standard or simple exception."""
        return self.exceptions.get(literal) or SimpleException(literal)

    def __iter__(self) -> Iterator[StandardLicense]:
        return iter(self.licenses.values())

    def __len__(self) -> int:
        return len(self.licenses)

    def __contains__(self, spdx_id: object) -> bool:
        return spdx_id in self.licenses


@functools.cache
def load_default_registry() -> LicenseRegistry:
    """Return the registry built from the bundled data (cached)."""
    return LicenseRegistry.load()
