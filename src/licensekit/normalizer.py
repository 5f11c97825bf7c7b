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

r"""Map free-text license mentions onto standard identifiers.

Build metadata often names a license by title and URL instead of an
SPDX id (``<name>The Apache Software License, Version 2.0</name>``).
:class:`GuessBasedNormalizer` resolves such a
:class:`~licensekit._types.SimpleLicense` in stages, returning early on
the first hit:

    ┌─────────────────────┬──────────────────────────────────────────────┐
    │ Stage                │ Rule                                         │
    ├─────────────────────┼──────────────────────────────────────────────┤
    │ 1. Public domain     │ "public domain" (any case) means CC0-1.0.   │
    ├─────────────────────┼──────────────────────────────────────────────┤
    │ 2. Exact id          │ Title is a registered license id.           │
    ├─────────────────────┼──────────────────────────────────────────────┤
    │ 3. Title + URL       │ Among the best title guesses, the first     │
    │                      │ whose reference URL matches an input URL.   │
    ├─────────────────────┼──────────────────────────────────────────────┤
    │ 4. Title only        │ Best guess if its score beats the           │
    │                      │ similarity threshold.                       │
    ├─────────────────────┼──────────────────────────────────────────────┤
    │ 5. Give up           │ None (or UnresolvedLicenseError).           │
    └─────────────────────┴──────────────────────────────────────────────┘

:class:`ExpressionNormalizer` applies the per-license rule to every
leaf of an expression tree and rebuilds only what changed.
"""

from __future__ import annotations

from typing import assert_never

from licensekit._types import (
    LicenseException,
    SimpleLicense,
    StandardLicense,
)
from licensekit.errors import UnresolvedLicenseError
from licensekit.expression import (
    Conjunction,
    Disjunction,
    JustLicense,
    LicenseExpression,
    OrLaterLicense,
    Sentinel,
    WithException,
    and_,
    or_,
)
from licensekit.logging import get_logger
from licensekit.registry import LicenseRegistry, uris_look_the_same
from licensekit.tfidf import Predictor, TfIdfBuilder

__all__ = [
    'DEFAULT_CANDIDATE_LIMIT',
    'DEFAULT_SIMILARITY_THRESHOLD',
    'ExpressionNormalizer',
    'GuessBasedNormalizer',
    'uris_look_the_same',
]

log = get_logger('licensekit.normalizer')

DEFAULT_SIMILARITY_THRESHOLD = 42.0
DEFAULT_CANDIDATE_LIMIT = 20


class ExpressionNormalizer:
    """Structural normalizer; subclasses decide how single licenses map.

    The base implementation leaves every license and exception alone.
    """

    def normalize_license(self, license: SimpleLicense) -> LicenseExpression | None:
        """Return the expression *license* stands for, or ``None``."""
        return None

    def normalize_exception(self, exception: LicenseException) -> LicenseException:
        """Return the canonical form of *exception*."""
        return exception

    def normalize(self, expr: LicenseExpression, *, strict: bool = False) -> LicenseExpression:
        """Normalize every free-text leaf of *expr*.

        Unchanged subtrees are returned as the same objects.

        Args:
            expr: The expression to normalize.
            strict: Raise instead of keeping leaves that cannot be
                resolved.

        Raises:
            UnresolvedLicenseError: In strict mode, for the first simple
                license without a normalization.
        """
        if isinstance(expr, Sentinel):
            return expr
        if isinstance(expr, (JustLicense, OrLaterLicense)):
            return self._normalize_leaf(expr, strict)
        if isinstance(expr, WithException):
            license = self._normalize_leaf(expr.license, strict)
            if not isinstance(license, (JustLicense, OrLaterLicense)):
                license = expr.license
            exception = self.normalize_exception(expr.exception)
            if license is expr.license and exception is expr.exception:
                return expr
            return WithException(license, exception)
        if isinstance(expr, (Conjunction, Disjunction)):
            operands = [self.normalize(op, strict=strict) for op in expr.ordered]
            if all(new is old for new, old in zip(operands, expr.ordered)):
                return expr
            return and_(*operands) if isinstance(expr, Conjunction) else or_(*operands)
        assert_never(expr)

    def _normalize_leaf(self, expr: JustLicense | OrLaterLicense, strict: bool) -> LicenseExpression:
        license = expr.license
        if isinstance(license, StandardLicense):
            return expr
        result = self.normalize_license(license)
        if result is None:
            if strict:
                raise UnresolvedLicenseError(license.title)
            return expr
        if isinstance(result, (JustLicense, OrLaterLicense)):
            # Keep the or-later modifier of the input.
            return type(expr)(result.license)
        return result


class GuessBasedNormalizer(ExpressionNormalizer):
    """Guesses standard licenses from titles and URLs with TF-IDF."""

    def __init__(
        self,
        registry: LicenseRegistry,
        *,
        similarity_threshold: float = DEFAULT_SIMILARITY_THRESHOLD,
        candidate_limit: int = DEFAULT_CANDIDATE_LIMIT,
    ) -> None:
        """Train the title model over every registered license.

        Args:
            registry: Standard licenses to guess from.
            similarity_threshold: Minimum score (0 to 100) for a
                title-only guess.
            candidate_limit: How many title guesses are checked for a
                matching URL.
        """
        self._registry = registry
        self.similarity_threshold = similarity_threshold
        self.candidate_limit = candidate_limit
        builder = TfIdfBuilder[StandardLicense]()
        for lic in registry:
            builder.add_document(lic, lic.title)
        self._predictor: Predictor[StandardLicense] = builder.build()

    def rank(self, title: str, limit: int | None = None) -> list[tuple[StandardLicense, float]]:
        """Return the best title matches, best first."""
        return self._predictor.rank(title, limit)

    def normalize_license(self, license: SimpleLicense) -> LicenseExpression | None:
        """Resolve *license* to a standard license, or ``None``."""
        title = license.title.strip()
        if title.lower() == 'public domain':
            cc0 = self._registry.find_license('CC0-1.0')
            if cc0 is not None:
                return JustLicense(cc0)
        known = self._registry.find_license(title)
        if known is not None:
            return JustLicense(known)

        guesses = self._predictor.rank(title)
        if not guesses:
            return None

        if license.uris:
            for candidate, score in guesses[: self.candidate_limit]:
                if any(uris_look_the_same(u, ref) for u in license.uris for ref in candidate.uris):
                    log.debug(
                        'license_guessed_by_uri',
                        title=license.title,
                        uris=list(license.uris),
                        license=candidate.id,
                        score=round(score * 100, 1),
                    )
                    return JustLicense(candidate)

        best, score = guesses[0]
        if score * 100 > self.similarity_threshold:
            log.debug(
                'license_guessed',
                title=license.title,
                license=best.id,
                score=round(score * 100, 1),
                alternatives=[c.id for c, _ in guesses[1:10]],
            )
            return JustLicense(best)
        log.debug('license_not_guessed', title=license.title, best=best.id, score=round(score * 100, 1))
        return None

    def resolve(self, license: SimpleLicense) -> LicenseExpression:
        """Like :meth:`normalize_license` but never returns ``None``.

        Raises:
            UnresolvedLicenseError: If no candidate is good enough.
        """
        result = self.normalize_license(license)
        if result is None:
            candidates = [(c.id, s) for c, s in self._predictor.rank(license.title, 3)]
            raise UnresolvedLicenseError(license.title, candidates)
        return result
