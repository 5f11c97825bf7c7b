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

"""Exception hierarchy for licensekit.

Every error raised on purpose by licensekit derives from
:class:`LicenseKitError`, so callers (and the CLI) can catch the whole
family with a single ``except`` clause::

    LicenseKitError
    ├── ParseError                 malformed license expression
    ├── PolicyConfigurationError   overlapping / duplicate policy keys
    ├── UnresolvedLicenseError     no license candidate above threshold
    ├── EquivalenceError           equivalence table yields a bad shape
    ├── LicenseDataError           invalid bundled or user license data
    └── ConfigError                invalid ``licensekit.toml``
"""

from __future__ import annotations

from collections.abc import Sequence

__all__ = [
    'ConfigError',
    'EquivalenceError',
    'LicenseDataError',
    'LicenseKitError',
    'ParseError',
    'PolicyConfigurationError',
    'UnresolvedLicenseError',
]


class LicenseKitError(Exception):
    """Base class for all licensekit errors."""


class ParseError(LicenseKitError, ValueError):
    """Raised when a license expression cannot be parsed.

    Attributes:
        expression: The original expression string.
        start: Offset of the first character of the offending token.
        end: Offset one past the last character of the offending token.
        detail: Human-readable description of the problem.
    """

    def __init__(self, detail: str, expression: str, start: int, end: int | None = None) -> None:
        """Initialize with the problem, the input and the token range."""
        self.detail = detail
        self.expression = expression
        self.start = start
        self.end = start + 1 if end is None or end <= start else end
        super().__init__(f'{detail}\ninput: {expression}\n       {self._marker()} error here')

    @property
    def position(self) -> int:
        """Offset where the error was detected."""
        return self.start

    def _marker(self) -> str:
        # Single-character tokens get one caret, longer ones get ^__^.
        width = self.end - self.start
        marker = '^' if width == 1 else '^' + '_' * (width - 2) + '^'
        return ' ' * self.start + marker


class PolicyConfigurationError(LicenseKitError):
    """Raised when compatibility policy entries are inconsistent.

    Two policy keys conflict when their equivalence expansions share a
    disjunctive part, because the interpreter could then attribute the
    same license to two different verdicts.
    """


class UnresolvedLicenseError(LicenseKitError):
    """Raised when a free-text license cannot be mapped to an identifier.

    Attributes:
        title: The license title (or text excerpt) that was classified.
        candidates: Best ``(candidate, score)`` pairs, highest first.
    """

    def __init__(self, title: str, candidates: Sequence[tuple[object, float]] = ()) -> None:
        self.title = title
        self.candidates = tuple(candidates)
        hint = ''
        if self.candidates:
            best = ', '.join(f'{c} ({score * 100:.0f})' for c, score in self.candidates[:3])
            hint = f'; closest candidates: {best}'
        super().__init__(f'Unable to resolve license {title!r}{hint}')


class EquivalenceError(LicenseKitError):
    """Raised when an equivalence table produces an unusable expression."""


class LicenseDataError(LicenseKitError):
    """Raised when license TOML data fails validation.

    Attributes:
        errors: List of human-readable error strings.
    """

    def __init__(self, errors: list[str]) -> None:
        self.errors = errors
        bullet_list = '\n'.join(f'  - {e}' for e in errors)
        super().__init__(f'License data has {len(errors)} validation error(s):\n{bullet_list}')


class ConfigError(LicenseKitError):
    """Raised when ``licensekit.toml`` fails validation.

    Attributes:
        errors: List of human-readable error strings.
    """

    def __init__(self, errors: list[str]) -> None:
        self.errors = errors
        bullet_list = '\n'.join(f'  - {e}' for e in errors)
        super().__init__(f'Configuration has {len(errors)} error(s):\n{bullet_list}')
