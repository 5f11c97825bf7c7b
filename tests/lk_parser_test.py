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

"""Tests for licensekit.parser."""

from __future__ import annotations

import pytest
from licensekit._types import SimpleException, SimpleLicense, StandardException, StandardLicense
from licensekit.errors import ParseError
from licensekit.expression import (
    NOASSERTION,
    NONE,
    Conjunction,
    Disjunction,
    JustLicense,
    OrLaterLicense,
    WithException,
    and_,
    or_,
    or_later,
    with_,
)
from licensekit.parser import LicenseExpressionParser, parse
from licensekit.registry import LicenseRegistry, load_default_registry

# ── Literals ─────────────────────────────────────────────────────────


class TestLiterals:
    """Tests for single literals."""

    def test_registered_license(self) -> None:
        """Test registered license."""
        expr = parse('MIT')
        assert isinstance(expr, JustLicense)
        assert isinstance(expr.license, StandardLicense)
        assert expr.license.title == 'MIT License'

    def test_unknown_license_is_simple(self) -> None:
        """Test unknown license is simple."""
        assert parse('My-License') == JustLicense(SimpleLicense('My-License'))

    def test_license_ref(self) -> None:
        """Test license ref."""
        expr = parse('DocumentRef-spdx-tool-1.2:LicenseRef-MIT-Style-2')
        assert str(expr) == 'DocumentRef-spdx-tool-1.2:LicenseRef-MIT-Style-2'

    def test_sentinels(self) -> None:
        """Test sentinels."""
        assert parse('NONE') is NONE
        assert parse('NOASSERTION') is NOASSERTION

    def test_or_later(self) -> None:
        """Test or later."""
        expr = parse('Apache-1.0+')
        assert isinstance(expr, OrLaterLicense)
        assert str(expr) == 'Apache-1.0+'

    def test_or_later_with_space(self) -> None:
        """Test or later with space."""
        assert parse('Apache-1.0 +') == parse('Apache-1.0+')

    def test_whitespace_ignored(self) -> None:
        """Test whitespace ignored."""
        assert parse('  MIT\n') == parse('MIT')


# ── Operators ────────────────────────────────────────────────────────


class TestOperators:
    """Tests for AND, OR and WITH."""

    def test_or_canonical_order(self) -> None:
        """Test or canonical order."""
        assert str(parse('MIT OR GPL')) == 'GPL OR MIT'

    def test_operators_case_insensitive(self) -> None:
        """Test operators case insensitive."""
        assert parse('MIT or Apache-2.0') == parse('MIT OR Apache-2.0')
        assert parse('MIT and Apache-2.0') == parse('MIT AND Apache-2.0')

    def test_and_binds_tighter_than_or(self) -> None:
        """Test and binds tighter than or."""
        expr = parse('A AND B OR C')
        assert isinstance(expr, Disjunction)
        assert str(expr) == 'C OR A AND B'
        assert parse('A OR B AND C') == parse('A OR (B AND C)')

    def test_parentheses_override(self) -> None:
        """Test parentheses override."""
        expr = parse('(A OR B) AND C')
        assert isinstance(expr, Conjunction)
        assert str(expr) == 'C AND (A OR B)'

    def test_nested(self) -> None:
        """Test nested."""
        assert str(parse('MIT OR (GPL AND Apache OR ABC)')) == 'ABC OR MIT OR Apache AND GPL'

    def test_flattening(self) -> None:
        """Test flattening."""
        expr = parse('A OR (B OR (C OR D))')
        assert isinstance(expr, Disjunction)
        assert len(expr.operands) == 4

    def test_duplicates_collapse(self) -> None:
        """Test duplicates collapse."""
        assert parse('MIT OR MIT') == parse('MIT')

    def test_with_exception(self) -> None:
        """Test with exception."""
        expr = parse('GPL-2.0-or-later WITH Classpath-exception-2.0')
        assert isinstance(expr, WithException)
        assert isinstance(expr.exception, StandardException)

    def test_with_unknown_exception(self) -> None:
        """Test with unknown exception."""
        expr = parse('MIT WITH my-exception')
        assert isinstance(expr, WithException)
        assert expr.exception == SimpleException('my-exception')

    def test_with_binds_tighter_than_and(self) -> None:
        """Test with binds tighter than and."""
        expr = parse('MIT AND GPL-2.0-only WITH Classpath-exception-2.0')
        assert isinstance(expr, Conjunction)
        assert str(expr) == 'MIT AND GPL-2.0-only WITH Classpath-exception-2.0'

    def test_or_later_with_exception_in_parentheses(self) -> None:
        """Test or later with exception in parentheses."""
        assert str(parse('((A+)) WITH B')) == 'A+ WITH B'

    @pytest.mark.parametrize(
        'text',
        [
            'MIT',
            'MIT+',
            'NONE',
            'NOASSERTION',
            'Apache-2.0 WITH LLVM-exception',
            'GPL-2.0-only+ WITH Classpath-exception-2.0',
            'MIT OR NONE',
            'NOASSERTION AND MIT',
            'MIT OR Apache-2.0 AND BSD-3-Clause',
            '(MIT OR Apache-2.0) AND BSD-3-Clause',
            '(MIT OR Apache-2.0) AND (GPL-2.0-only+ WITH Classpath-exception-2.0 OR BSD-3-Clause)',
            '((MIT OR ISC) AND (Apache-2.0 OR BSD-2-Clause)) OR GPL-3.0-only',
            '(MIT AND (ISC OR Zlib)) OR (Apache-2.0 AND GPL-2.0-only+ WITH Classpath-exception-2.0)',
        ],
    )
    def test_round_trip(self, text: str) -> None:
        """Printing and reparsing yields the same tree."""
        expr = parse(text)
        printed = str(expr)
        assert parse(printed) == expr
        assert str(parse(printed)) == printed

    def test_round_trip_of_built_expressions(self) -> None:
        """Test round trip of built expressions."""
        registry = load_default_registry()
        mit, isc, apache, gpl = (
            JustLicense(registry.require_license(i)) for i in ('MIT', 'ISC', 'Apache-2.0', 'GPL-2.0-only')
        )
        classpath = registry.find_exception('Classpath-exception-2.0')
        assert classpath is not None
        gpl_cp = with_(or_later(gpl), classpath)
        for expr in (
            and_(or_(mit, isc), apache),
            or_(and_(mit, isc), and_(apache, gpl_cp)),
            and_(or_(mit, NONE), or_(gpl_cp, and_(isc, apache)) | NOASSERTION),
            gpl_cp,
        ):
            assert parse(str(expr)) == expr

    def test_custom_registry(self) -> None:
        """Test custom registry."""
        registry = LicenseRegistry(licenses={'Acme': StandardLicense('Acme', 'Acme License')})
        parser = LicenseExpressionParser(registry)
        assert isinstance(parser.parse('Acme').license, StandardLicense)  # type: ignore[union-attr]
        assert isinstance(parser.parse('MIT').license, SimpleLicense)  # type: ignore[union-attr]


# ── Errors ───────────────────────────────────────────────────────────


class TestParseErrors:
    """Tests for malformed expressions."""

    def test_missing_operand(self) -> None:
        """Test missing operand."""
        with pytest.raises(ParseError) as info:
            parse('A OR')
        err = info.value
        assert err.detail == 'OR expression requires two arguments'
        assert err.start == 2
        assert str(err).splitlines()[-1] == ' ' * 9 + '^^ error here'

    def test_missing_and_operand(self) -> None:
        """Test missing and operand."""
        with pytest.raises(ParseError, match='AND expression requires two arguments'):
            parse('AND MIT')

    def test_double_with(self) -> None:
        """Test double with."""
        with pytest.raises(ParseError) as info:
            parse('A WITH B WITH C')
        err = info.value
        assert err.detail.startswith('Left argument of WITH must be a license')
        assert err.start == 9
        assert str(err).splitlines()[-1].endswith(' ' * 9 + '^__^ error here')

    def test_with_on_compound(self) -> None:
        """Test with on compound."""
        with pytest.raises(ParseError, match='Left argument of WITH'):
            parse('(A OR B) WITH C')

    def test_with_without_license(self) -> None:
        """Test with without license."""
        with pytest.raises(ParseError, match='WITH expression requires a license'):
            parse('WITH B')

    def test_or_later_on_compound(self) -> None:
        """Test or later on compound."""
        with pytest.raises(ParseError, match="'Or later' modifier can be applied to a license only"):
            parse('(A AND B)+')

    def test_double_or_later(self) -> None:
        """Test double or later."""
        with pytest.raises(ParseError, match="'Or later' modifier"):
            parse('A++')

    def test_or_later_without_license(self) -> None:
        """Test or later without license."""
        with pytest.raises(ParseError, match="'Or later' modifier requires a license"):
            parse('+')

    def test_unclosed_brace(self) -> None:
        """Test unclosed brace."""
        with pytest.raises(ParseError) as info:
            parse('(MIT OR (GPL WITH exception AND Apache')
        assert info.value.detail == 'Unclosed open brace'
        assert info.value.start == 8

    def test_unmatched_closing_brace(self) -> None:
        """Test unmatched closing brace."""
        with pytest.raises(ParseError, match='Unmatched closing brace'):
            parse('MIT)')

    def test_empty(self) -> None:
        """Test empty."""
        with pytest.raises(ParseError, match='Result is empty'):
            parse('   ')

    def test_missing_operator(self) -> None:
        """Test missing operator."""
        with pytest.raises(ParseError, match=r'AND/OR is missing: \[MIT, Apache-2.0\]'):
            parse('MIT Apache-2.0')

    @pytest.mark.parametrize('text', ['MIT / Apache-2.0', 'MIT, Apache-2.0', 'MIT & BSD'])
    def test_unexpected_character(self, text: str) -> None:
        """Test unexpected character."""
        with pytest.raises(ParseError, match='Unexpected character'):
            parse(text)

    def test_parse_error_is_value_error(self) -> None:
        """Test parse error is value error."""
        with pytest.raises(ValueError):
            parse('(')
