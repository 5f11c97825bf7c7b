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

"""One object wiring registry, parser, normalizer, equivalence and policy.

Usage::

    from licensekit.config import load_config
    from licensekit.engine import LicenseEngine

    engine = LicenseEngine.from_config(load_config(Path('licensekit.toml')))
    report = engine.check('MIT OR GPL-2.0-or-later')
    report.result.verdict  # Verdict.ALLOW
"""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass

from licensekit._types import SimpleLicense
from licensekit.bundle import BundleLicenseParser
from licensekit.compat import CompatibilityInterpreter, ResolvedCompatibility
from licensekit.config import EquivalenceRule, LicenseKitConfig
from licensekit.equivalence import LicenseEquivalence, spdx_equivalence
from licensekit.errors import ConfigError, ParseError
from licensekit.expression import LicenseExpression
from licensekit.logging import get_logger
from licensekit.normalizer import GuessBasedNormalizer
from licensekit.parser import LicenseExpressionParser
from licensekit.policy import CompatibilityPolicy
from licensekit.registry import LicenseRegistry, load_default_registry

__all__ = [
    'CheckReport',
    'LicenseEngine',
]

log = get_logger('licensekit.engine')


@dataclass(frozen=True)
class CheckReport:
    """Outcome of :meth:`LicenseEngine.check`.

    Attributes:
        expression: The parsed input.
        normalized: The input with free-text licenses resolved.
        expanded: The normalized expression after equivalence expansion.
        result: Verdict and reasons.
    """

    expression: LicenseExpression
    normalized: LicenseExpression
    expanded: LicenseExpression
    result: ResolvedCompatibility


def _user_table(
    rules: Iterable[EquivalenceRule],
    parser: LicenseExpressionParser,
) -> dict[LicenseExpression, set[LicenseExpression]]:
    table: dict[LicenseExpression, set[LicenseExpression]] = {}
    errors: list[str] = []
    for i, rule in enumerate(rules):
        try:
            source = parser.parse(rule.source)
            targets = {parser.parse(t) for t in rule.targets}
        except ParseError as exc:
            errors.append(f'equivalence[{i}]: {exc}')
            continue
        table.setdefault(source, set()).update(targets)
    if errors:
        raise ConfigError(errors)
    return table


class LicenseEngine:
    """Facade over the license expression pipeline."""

    def __init__(
        self,
        registry: LicenseRegistry,
        normalizer: GuessBasedNormalizer,
        equivalence: LicenseEquivalence,
        policy: CompatibilityPolicy,
    ) -> None:
        """Assemble an engine from already built parts."""
        self.registry = registry
        self.parser = LicenseExpressionParser(registry)
        self.bundle_parser = BundleLicenseParser(self.parser, registry=registry)
        self.normalizer = normalizer
        self.equivalence = equivalence
        self.policy = policy
        self.interpreter = CompatibilityInterpreter(equivalence, policy)

    @classmethod
    def from_config(cls, config: LicenseKitConfig | None = None) -> LicenseEngine:
        """Build every component from *config* (defaults when ``None``).

        Raises:
            LicenseDataError: If user license data is invalid.
            ConfigError: If an equivalence rule does not parse.
            PolicyConfigurationError: If policy rules overlap or do not
                parse.
        """
        config = config or LicenseKitConfig()
        if config.licenses_toml is not None:
            registry = LicenseRegistry.load(user_toml=config.licenses_toml)
        else:
            registry = load_default_registry()
        parser = LicenseExpressionParser(registry)

        equivalence = LicenseEquivalence([spdx_equivalence(registry)])
        if config.equivalence:
            equivalence.register(_user_table(config.equivalence, parser))

        normalizer = GuessBasedNormalizer(
            registry,
            similarity_threshold=config.similarity_threshold,
            candidate_limit=config.candidate_limit,
        )
        policy = CompatibilityPolicy.from_rules(config.policy, parser)
        log.debug('engine_ready', licenses=len(registry), policy_entries=len(policy))
        return cls(registry, normalizer, equivalence, policy)

    def _as_expression(self, value: LicenseExpression | str) -> LicenseExpression:
        return self.parser.parse(value) if isinstance(value, str) else value

    def parse(self, text: str) -> LicenseExpression:
        """Parse a license expression."""
        return self.parser.parse(text)

    def normalize(self, value: LicenseExpression | str, *, strict: bool = False) -> LicenseExpression:
        """Resolve free-text licenses inside an expression."""
        return self.normalizer.normalize(self._as_expression(value), strict=strict)

    def normalize_license(self, title: str, uris: Iterable[str] = ()) -> LicenseExpression | None:
        """Map a license title (and optional URLs) to an expression."""
        return self.normalizer.normalize_license(SimpleLicense(title, tuple(uris)))

    def parse_bundle_license(self, value: str, context: object = '') -> LicenseExpression | None:
        """Read an OSGi ``Bundle-License`` header value."""
        return self.bundle_parser.parse(value, context)

    def expand(self, value: LicenseExpression | str) -> LicenseExpression:
        """Expand version ranges into concrete licenses."""
        return self.equivalence.expand(self._as_expression(value))

    def evaluate(self, value: LicenseExpression | str | None) -> ResolvedCompatibility:
        """Evaluate an expression against the policy."""
        return self.interpreter.evaluate(None if value is None else self._as_expression(value))

    def check(self, text: str) -> CheckReport:
        """Parse, normalize and evaluate *text* in one go."""
        expression = self.parser.parse(text)
        normalized = self.normalizer.normalize(expression)
        result = self.interpreter.evaluate(normalized)
        log.debug('license_checked', expression=expression, verdict=result.verdict.name)
        return CheckReport(expression, normalized, self.equivalence.expand(normalized), result)
