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

"""Tests for licensekit.compat."""

from __future__ import annotations

import functools
import itertools

import pytest
from licensekit.compat import (
    CompatibilityInterpreter,
    LicenseCompatibility,
    ResolvedCompatibility,
    Verdict,
)
from licensekit.equivalence import LicenseEquivalence, spdx_equivalence
from licensekit.errors import PolicyConfigurationError
from licensekit.expression import LicenseExpression, and_, or_
from licensekit.parser import parse
from licensekit.policy import CompatibilityPolicy
from licensekit.registry import load_default_registry

_LGPL_21 = "See ISSUE-21, LGPL less than 3.0 can't be used for sure"
_LGPL_23 = 'See ISSUE-23, the use of LGPL 3.0+ needs to be decided'

# ── Helpers ──────────────────────────────────────────────────────────


@pytest.fixture(scope='module')
def equivalence() -> LicenseEquivalence:
    """Expander over the bundled SPDX version table."""
    return LicenseEquivalence([spdx_equivalence(load_default_registry())])


@pytest.fixture(scope='module')
def interpreter(equivalence: LicenseEquivalence) -> CompatibilityInterpreter:
    """Interpreter over a small but realistic policy."""
    policy = CompatibilityPolicy()
    policy.register(parse('CC0-1.0'), Verdict.ALLOW, 'Public domain is OK')
    policy.register(parse('MIT'), Verdict.ALLOW)
    policy.register(parse('Apache-2.0'), Verdict.ALLOW, 'ISSUE-2: Apache Category A licenses are ok')
    policy.register(
        parse('Apache-1.0+ AND GPL-1.0-or-later'), Verdict.REJECT, 'If both Apache1+ and GPL1+, then we are fine'
    )
    policy.register(parse('LGPL-3.0-or-later'), Verdict.UNKNOWN, _LGPL_23)
    policy.register(parse('LGPL-2.0-only OR LGPL-2.1-only'), Verdict.REJECT, _LGPL_21)
    return CompatibilityInterpreter(equivalence, policy)


def _check(interpreter: CompatibilityInterpreter, text: str) -> ResolvedCompatibility:
    return interpreter.evaluate(parse(text))


# ── Evaluation ───────────────────────────────────────────────────────


class TestEvaluate:
    """Tests for CompatibilityInterpreter.evaluate()."""

    def test_null_rejected(self, interpreter: CompatibilityInterpreter) -> None:
        """Test null rejected."""
        assert interpreter.evaluate(None) == ResolvedCompatibility(Verdict.REJECT, ('License is null',))

    def test_direct_key_without_reason(self, interpreter: CompatibilityInterpreter) -> None:
        """Test direct key without reason."""
        assert _check(interpreter, 'MIT') == ResolvedCompatibility(Verdict.ALLOW, ('MIT: ALLOW',))

    def test_or_of_allowed(self, interpreter: CompatibilityInterpreter) -> None:
        """Test or of allowed."""
        assert _check(interpreter, 'MIT OR CC0-1.0') == ResolvedCompatibility(
            Verdict.ALLOW, ('CC0-1.0: Public domain is OK', 'MIT: ALLOW')
        )

    def test_or_with_unknown(self, interpreter: CompatibilityInterpreter) -> None:
        """Test or with unknown."""
        assert _check(interpreter, 'GFDL-1.1-only OR MIT') == ResolvedCompatibility(Verdict.ALLOW, ('MIT: ALLOW',))

    def test_and_with_unknown(self, interpreter: CompatibilityInterpreter) -> None:
        """Test and with unknown."""
        assert _check(interpreter, 'GFDL-1.1-only AND MIT') == ResolvedCompatibility(
            Verdict.UNKNOWN, ('No rules found for GFDL-1.1-only',)
        )

    def test_no_rule(self, interpreter: CompatibilityInterpreter) -> None:
        """Test no rule."""
        assert _check(interpreter, 'Apache-1.0') == ResolvedCompatibility(
            Verdict.UNKNOWN, ('No rules found for Apache-1.0',)
        )

    def test_or_later_expanded(self, interpreter: CompatibilityInterpreter) -> None:
        """Test or later expanded."""
        assert _check(interpreter, 'Apache-1.0+') == ResolvedCompatibility(
            Verdict.ALLOW, ('Apache-2.0: ISSUE-2: Apache Category A licenses are ok',)
        )

    def test_with_exception_has_no_rule(self, interpreter: CompatibilityInterpreter) -> None:
        """Test with exception has no rule."""
        assert _check(interpreter, 'Apache-2.0 WITH Classpath-exception-2.0') == ResolvedCompatibility(
            Verdict.UNKNOWN, ('No rules found for Apache-2.0 WITH Classpath-exception-2.0',)
        )

    def test_two_unknowns_concatenate(self, interpreter: CompatibilityInterpreter) -> None:
        """Test two unknowns concatenate."""
        result = _check(interpreter, 'Apache-2.0 WITH Classpath-exception-2.0 OR MIT WITH LLVM-exception')
        assert result == ResolvedCompatibility(
            Verdict.UNKNOWN,
            (
                'No rules found for Apache-2.0 WITH Classpath-exception-2.0',
                'No rules found for MIT WITH LLVM-exception',
            ),
        )

    def test_or_of_reject_and_unknown(self, interpreter: CompatibilityInterpreter) -> None:
        """Mixed verdicts are prefixed with their verdict name."""
        assert _check(interpreter, 'LGPL-3.0-only OR LGPL-2.0-only') == ResolvedCompatibility(
            Verdict.UNKNOWN, (f'REJECT: LGPL-2.0-only: {_LGPL_21}', f'UNKNOWN: LGPL-3.0-only: {_LGPL_23}')
        )

    def test_and_of_reject_and_unknown(self, interpreter: CompatibilityInterpreter) -> None:
        """Test and of reject and unknown."""
        assert _check(interpreter, 'LGPL-3.0-only AND LGPL-2.0-only') == ResolvedCompatibility(
            Verdict.REJECT, (f'REJECT: LGPL-2.0-only: {_LGPL_21}', f'UNKNOWN: LGPL-3.0-only: {_LGPL_23}')
        )

    def test_compound_policy_key(self, interpreter: CompatibilityInterpreter) -> None:
        """Test compound policy key."""
        result = _check(interpreter, 'GPL-1.0-or-later AND Apache-1.0+')
        assert result.verdict is Verdict.REJECT
        assert result.reasons == ('GPL-1.0-or-later AND Apache-1.0+: If both Apache1+ and GPL1+, then we are fine',)

    def test_part_of_or_later_key(self, interpreter: CompatibilityInterpreter) -> None:
        """A license covered by an or-later key takes its verdict."""
        assert _check(interpreter, 'LGPL-3.0-only') == ResolvedCompatibility(
            Verdict.UNKNOWN, (f'LGPL-3.0-only: {_LGPL_23}',)
        )

    def test_and_of_allowed_is_allowed(self, interpreter: CompatibilityInterpreter) -> None:
        """Test and of allowed is allowed."""
        result = _check(interpreter, 'MIT AND Apache-2.0')
        assert result.allowed
        assert len(result.reasons) == 2


# ── Order independence ───────────────────────────────────────────────

_MIXED_OR = ResolvedCompatibility(
    Verdict.UNKNOWN,
    (
        'UNKNOWN: No rules found for GFDL-1.1-only',
        f'REJECT: LGPL-2.0-only: {_LGPL_21}',
        f'LGPL-3.0-only: {_LGPL_23}',
        'No rules found for MIT WITH LLVM-exception',
    ),
)


def _built_in_every_order(texts: tuple[str, ...], op: str) -> list[LicenseExpression]:
    """The same expression assembled from every operand permutation."""
    combine = or_ if op == 'OR' else and_
    built: list[LicenseExpression] = []
    for perm in itertools.permutations(texts):
        leaves = [parse(t) for t in perm]
        built.append(combine(*leaves))
        built.append(functools.reduce(combine, leaves))
        built.append(parse(f' {op} '.join(f'({t})' for t in perm)))
    return built


class TestOrderIndependence:
    """Results must not depend on the order operands were supplied in."""

    @pytest.mark.parametrize(
        ('texts', 'op', 'printed', 'expected'),
        [
            (
                ('MIT', 'CC0-1.0', 'LGPL-2.0-only'),
                'OR',
                'CC0-1.0 OR LGPL-2.0-only OR MIT',
                ResolvedCompatibility(Verdict.ALLOW, ('CC0-1.0: Public domain is OK', 'MIT: ALLOW')),
            ),
            (
                ('LGPL-3.0-only', 'MIT WITH LLVM-exception', 'LGPL-2.0-only', 'GFDL-1.1-only'),
                'OR',
                'GFDL-1.1-only OR LGPL-2.0-only OR LGPL-3.0-only OR MIT WITH LLVM-exception',
                _MIXED_OR,
            ),
            (
                ('MIT', 'LGPL-3.0-only', 'LGPL-2.0-only'),
                'AND',
                'LGPL-2.0-only AND LGPL-3.0-only AND MIT',
                ResolvedCompatibility(
                    Verdict.REJECT, (f'REJECT: LGPL-2.0-only: {_LGPL_21}', f'UNKNOWN: LGPL-3.0-only: {_LGPL_23}')
                ),
            ),
            (
                ('Apache-2.0', 'CC0-1.0', 'MIT'),
                'AND',
                'Apache-2.0 AND CC0-1.0 AND MIT',
                ResolvedCompatibility(
                    Verdict.ALLOW,
                    (
                        'Apache-2.0: ISSUE-2: Apache Category A licenses are ok',
                        'CC0-1.0: Public domain is OK',
                        'MIT: ALLOW',
                    ),
                ),
            ),
        ],
        ids=['or-allow', 'or-mixed', 'and-mixed', 'and-allow'],
    )
    def test_every_permutation(
        self,
        interpreter: CompatibilityInterpreter,
        texts: tuple[str, ...],
        op: str,
        printed: str,
        expected: ResolvedCompatibility,
    ) -> None:
        """Test every permutation."""
        for expr in _built_in_every_order(texts, op):
            assert str(expr) == printed
            assert interpreter.evaluate(expr) == expected

    def test_mixed_and_of_four_is_stable(self, interpreter: CompatibilityInterpreter) -> None:
        """Nested prefixes come out the same for every operand order."""
        texts = ('LGPL-3.0-only', 'MIT WITH LLVM-exception', 'LGPL-2.0-only', 'GFDL-1.1-only')
        results = {interpreter.evaluate(expr) for expr in _built_in_every_order(texts, 'AND')}
        assert len(results) == 1
        assert results.pop().verdict is Verdict.REJECT

    def test_nested_compound(self, interpreter: CompatibilityInterpreter) -> None:
        """Test nested compound."""
        groups = ('(MIT AND CC0-1.0)', '(LGPL-2.0-only OR GFDL-1.1-only)', 'LGPL-3.0-only')
        exprs = [parse(' OR '.join(perm)) for perm in itertools.permutations(groups)]
        seen = {(str(expr), interpreter.evaluate(expr)) for expr in exprs}
        assert len(seen) == 1
        printed, result = seen.pop()
        assert printed == 'GFDL-1.1-only OR LGPL-2.0-only OR LGPL-3.0-only OR CC0-1.0 AND MIT'
        assert result.verdict is Verdict.ALLOW


# ── Policy indexing ──────────────────────────────────────────────────


class TestInterpreterSetup:
    """Tests for CompatibilityInterpreter construction."""

    def test_overlapping_keys_rejected(self, equivalence: LicenseEquivalence) -> None:
        """Test overlapping keys rejected."""
        policy = {
            parse('GPL-2.0-or-later'): LicenseCompatibility(Verdict.ALLOW),
            parse('GPL-3.0-only'): LicenseCompatibility(Verdict.REJECT),
        }
        with pytest.raises(PolicyConfigurationError, match='participates in multiple policy entries'):
            CompatibilityInterpreter(equivalence, policy)

    def test_empty_policy(self, equivalence: LicenseEquivalence) -> None:
        """Test empty policy."""
        interpreter = CompatibilityInterpreter(equivalence, {})
        assert interpreter.evaluate(parse('MIT')).verdict is Verdict.UNKNOWN


class TestResults:
    """Tests for the result value types."""

    def test_resolve_uses_reason(self) -> None:
        """Test resolve uses reason."""
        result = LicenseCompatibility(Verdict.REJECT, 'No').resolve(parse('MIT'))
        assert result.reasons == ('MIT: No',)
        assert not result.allowed

    def test_str(self) -> None:
        """Test str."""
        assert str(ResolvedCompatibility(Verdict.ALLOW, ('a', 'b'))) == 'ALLOW: a; b'

    def test_verdict_values(self) -> None:
        """Test verdict values."""
        assert [v.value for v in Verdict] == ['allow', 'unknown', 'reject']
