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

"""Licenses from OSGi ``Bundle-License`` manifest headers.

A ``META-INF/MANIFEST.MF`` may declare its license in one of three
shapes; only the single-license ones are understood::

    Bundle-License: https://www.apache.org/licenses/LICENSE-2.0    → Apache-2.0
    Bundle-License: Apache-2.0 OR MIT;link=https://...           → Apache-2.0 OR MIT
    Bundle-License: Apache-2.0;link=...,EPL-2.0;link=...         → None

Values that cannot be understood yield ``None`` and an INFO event, so a
caller can fall back to other metadata.

Usage::

    from licensekit.bundle import parse_bundle_license

    parse_bundle_license('Apache-2.0;https://www.apache.org/licenses/LICENSE-2.0')
"""

from __future__ import annotations

import re
from collections.abc import Callable
from urllib.parse import urlsplit

from licensekit.errors import ParseError
from licensekit.expression import JustLicense, LicenseExpression
from licensekit.logging import get_logger
from licensekit.parser import LicenseExpressionParser
from licensekit.registry import LicenseRegistry, load_default_registry

__all__ = [
    'BundleLicenseParser',
    'parse_bundle_license',
]

log = get_logger('licensekit.bundle')

# RFC 3986 reserved and unreserved characters plus percent escapes.
_URI_RE = re.compile(r"[A-Za-z0-9\-._~:/?#\[\]@!$&'()*+,;=%]+")


def _is_valid_uri(value: str) -> bool:
    if not _URI_RE.fullmatch(value):
        return False
    try:
        urlsplit(value)
    except ValueError:
        return False
    return True


class BundleLicenseParser:
    """Turns ``Bundle-License`` header values into license expressions.

    Args:
        parser: Parses ``expression;link`` values.
        lookup_by_uri: Maps a license URL to an expression, or ``None``
            when the URL is unknown.  Defaults to the registry's
            :meth:`~licensekit.registry.LicenseRegistry.find_by_uri`.
    """

    def __init__(
        self,
        parser: LicenseExpressionParser | None = None,
        lookup_by_uri: Callable[[str], LicenseExpression | None] | None = None,
        *,
        registry: LicenseRegistry | None = None,
    ) -> None:
        """Create a parser over *registry* (the bundled data by default)."""
        self._registry = registry if registry is not None else load_default_registry()
        self._parser = parser or LicenseExpressionParser(self._registry)
        self._lookup_by_uri = lookup_by_uri or self._registry_lookup

    def _registry_lookup(self, uri: str) -> LicenseExpression | None:
        lic = self._registry.find_by_uri(uri)
        return JustLicense(lic) if lic is not None else None

    def parse(self, value: str, context: object = '') -> LicenseExpression | None:
        """Return the expression declared by *value*, or ``None``.

        Args:
            value: The ``Bundle-License`` header value.
            context: Where the value came from (jar name, path); only
                used in log events.
        """
        if ',' in value:
            log.info('bundle_license_ignored', value=value, context=str(context), reason='multiple licenses')
            return None
        if value.startswith('http'):
            if not _is_valid_uri(value):
                log.info('bundle_license_ignored', value=value, context=str(context), reason='invalid URI')
                return None
            return self._lookup_by_uri(value)
        # The link after ';' is ignored when an expression is present.
        expression, _, _ = value.partition(';')
        try:
            return self._parser.parse(expression)
        except ParseError as exc:
            log.info('bundle_license_ignored', value=value, context=str(context), reason=exc.detail)
            return None


def parse_bundle_license(
    value: str,
    context: object = '',
    registry: LicenseRegistry | None = None,
) -> LicenseExpression | None:
    """Parse a ``Bundle-License`` value with a default :class:`BundleLicenseParser`."""
    return BundleLicenseParser(registry=registry).parse(value, context)
