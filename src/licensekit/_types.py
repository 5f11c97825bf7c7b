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

"""Shared leaf-level license value types.

This module must have **zero** imports from other ``licensekit``
modules to avoid circular-import chains.  It is safe to import from
any module in the project.

Two flavours exist for both licenses and exceptions:

- **Standard** values come from a registry (SPDX) and are identified by
  their ``id`` alone; title and URIs are descriptive only.
- **Simple** values are free text found in the wild (a POM ``<name>``,
  a manifest header) and are identified by title plus the *set* of URIs.
"""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass, field

__all__ = [
    'License',
    'LicenseException',
    'SimpleException',
    'SimpleLicense',
    'StandardException',
    'StandardLicense',
    'display_name',
]


def _uri_tuple(uris: Iterable[str]) -> tuple[str, ...]:
    """Deduplicate and sort URIs so that equality is by URI set."""
    if isinstance(uris, str):
        uris = (uris,)
    return tuple(sorted({u.strip() for u in uris if u and u.strip()}))


@dataclass(frozen=True)
class StandardLicense:
    """A license with a stable identifier from a license provider.

    Attributes:
        id: The short identifier (e.g. ``"Apache-2.0"``).
        title: Human-readable full name.
        uris: Reference URIs for the license text.
        provider_id: Registry the identifier comes from.
    """

    id: str
    title: str = field(default='', compare=False)
    uris: tuple[str, ...] = field(default=(), compare=False)
    provider_id: str = field(default='SPDX', compare=False)

    def __str__(self) -> str:
        return self.id


@dataclass(frozen=True)
class SimpleLicense:
    """A free-text license without a stable identifier.

    Attributes:
        title: The license name as found in the metadata.
        uris: URIs found next to the name (stored sorted and unique).
    """

    title: str
    uris: tuple[str, ...] = ()

    def __post_init__(self) -> None:
        object.__setattr__(self, 'uris', _uri_tuple(self.uris))

    def __str__(self) -> str:
        if not self.uris:
            return self.title
        return f'{self.title} ({", ".join(self.uris)})'


@dataclass(frozen=True)
class StandardException:
    """A license exception with a stable identifier.

    Attributes:
        id: The short identifier (e.g. ``"Classpath-exception-2.0"``).
        title: Human-readable full name.
        uris: Reference URIs for the exception text.
        provider_id: Registry the identifier comes from.
    """

    id: str
    title: str = field(default='', compare=False)
    uris: tuple[str, ...] = field(default=(), compare=False)
    provider_id: str = field(default='SPDX', compare=False)

    def __str__(self) -> str:
        return self.id


@dataclass(frozen=True)
class SimpleException:
    """A free-text license exception."""

    title: str
    uris: tuple[str, ...] = ()

    def __post_init__(self) -> None:
        object.__setattr__(self, 'uris', _uri_tuple(self.uris))

    def __str__(self) -> str:
        if not self.uris:
            return self.title
        return f'{self.title} ({", ".join(self.uris)})'


License = StandardLicense | SimpleLicense
LicenseException = StandardException | SimpleException


def display_name(value: License | LicenseException) -> str:
    """Return the human-readable title, falling back to the identifier."""
    if isinstance(value, (StandardLicense, StandardException)):
        return value.title or value.id
    return value.title
