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

r"""License expression parser.

Turns strings such as ``"MIT OR (GPL-2.0-only WITH Classpath-exception-2.0)"``
into :mod:`licensekit.expression` trees.

Grammar (informal)::

    literal     = 1*(ALPHA / DIGIT / "-" / "." / "_" / ":")
    simple      = literal / literal "+"
    expression  = simple
                / simple "WITH" literal
                / expression "AND" expression
                / expression "OR" expression
                / "(" expression ")"

Operators are case-insensitive.  ``NONE`` and ``NOASSERTION`` are the
two sentinel literals.

Operator precedence (tightest to loosest)::

    +  >  WITH  >  AND  >  OR

The parser is a shunting-yard pass to reverse Polish notation followed
by a stack evaluation.  Every failure raises
:class:`~licensekit.errors.ParseError` pointing at the offending token::

    OR expression requires two arguments
    input: A OR
             ^^ error here

Usage::

    from licensekit.parser import parse

    expr = parse('MIT OR Apache-2.0')
    str(expr)  # 'Apache-2.0 OR MIT'
"""

from __future__ import annotations

import enum
import re
from dataclasses import dataclass

from licensekit.errors import ParseError
from licensekit.expression import (
    NOASSERTION,
    NONE,
    JustLicense,
    LicenseExpression,
    OrLaterLicense,
    and_,
    or_,
    or_later,
    with_,
)
from licensekit.registry import LicenseRegistry, load_default_registry

__all__ = [
    'LicenseExpressionParser',
    'parse',
]


class _Kind(enum.IntEnum):
    """Token kinds; the numeric value is the operator precedence."""

    LBRACE = 0
    LITERAL = 1
    OR = 2
    AND = 3
    WITH = 4
    PLUS = 5
    RBRACE = 6


_OPERATORS = {'WITH': _Kind.WITH, 'AND': _Kind.AND, 'OR': _Kind.OR}

_TOKEN_RE = re.compile(
    r"""
    (?P<space>\s+)
  | (?P<literal>[-A-Za-z0-9_.:]+)
  | (?P<punct>[()+])
  | (?P<other>.)
    """,
    re.VERBOSE | re.DOTALL,
)

_SENTINELS = {'NONE': NONE, 'NOASSERTION': NOASSERTION}


@dataclass(frozen=True)
class _Token:
    kind: _Kind
    value: str
    start: int
    end: int


def _tokenize(text: str) -> list[_Token]:
    tokens: list[_Token] = []
    for m in _TOKEN_RE.finditer(text):
        if m.lastgroup == 'space':
            continue
        if m.lastgroup == 'other':
            raise ParseError(f'Unexpected character {m.group()!r}', text, m.start())
        value = m.group()
        if m.lastgroup == 'punct':
            kind = {'(': _Kind.LBRACE, ')': _Kind.RBRACE, '+': _Kind.PLUS}[value]
        else:
            kind = _OPERATORS.get(value.upper(), _Kind.LITERAL)
        tokens.append(_Token(kind, value, m.start(), m.end()))
    return tokens


class LicenseExpressionParser:
    """Parses license expressions against a license registry.

    Literals that name a registered license become standard licenses;
    anything else becomes a :class:`~licensekit._types.SimpleLicense`
    (and likewise for exceptions).
    """

    def __init__(self, registry: LicenseRegistry | None = None) -> None:
        """Create a parser; defaults to the bundled registry."""
        self._registry = registry if registry is not None else load_default_registry()

    def parse(self, text: str) -> LicenseExpression:
        """Parse *text* into a license expression.

        Raises:
            ParseError: If the text is not a well-formed expression.
        """
        return self._evaluate(self._to_rpn(text), text)

    def _to_rpn(self, text: str) -> list[_Token]:
        operators: list[_Token] = []
        rpn: list[_Token] = []
        for token in _tokenize(text):
            if token.kind is _Kind.LITERAL:
                rpn.append(token)
            elif token.kind is _Kind.LBRACE:
                operators.append(token)
            elif token.kind is _Kind.RBRACE:
                while operators and operators[-1].kind is not _Kind.LBRACE:
                    rpn.append(operators.pop())
                if not operators:
                    raise ParseError('Unmatched closing brace', text, token.start, token.end)
                operators.pop()
            else:
                while operators and operators[-1].kind >= token.kind:
                    rpn.append(operators.pop())
                operators.append(token)
        rpn.extend(reversed(operators))
        return rpn

    def _evaluate(self, rpn: list[_Token], text: str) -> LicenseExpression:
        result: list[LicenseExpression] = []
        i = 0
        while i < len(rpn):
            token = rpn[i]
            i += 1
            kind = token.kind
            if kind is _Kind.LITERAL:
                if token.value in _SENTINELS:
                    result.append(_SENTINELS[token.value])
                elif i < len(rpn) and rpn[i].kind is _Kind.WITH:
                    with_token = rpn[i]
                    i += 1
                    if not result:
                        raise ParseError(
                            'WITH expression requires a license on the left', text, with_token.start, with_token.end
                        )
                    license = result.pop()
                    if not isinstance(license, (JustLicense, OrLaterLicense)):
                        raise ParseError(
                            'Left argument of WITH must be a license or an or-later license. '
                            f'Actual argument is {type(license).__name__}: [{license}]',
                            text,
                            with_token.start,
                            with_token.end,
                        )
                    result.append(with_(license, self._registry.parse_exception(token.value)))
                else:
                    result.append(JustLicense(self._registry.parse_license(token.value)))
            elif kind is _Kind.OR or kind is _Kind.AND:
                if len(result) < 2:
                    raise ParseError(
                        f'{token.value.upper()} expression requires two arguments', text, token.start, token.end
                    )
                right = result.pop()
                left = result.pop()
                result.append(or_(left, right) if kind is _Kind.OR else and_(left, right))
            elif kind is _Kind.WITH:
                exception = result.pop() if result else None
                license = result.pop() if result else None
                raise ParseError(
                    'WITH should be applied to a license and a license exception. '
                    f'Actual arguments are [{license}] and [{exception}]',
                    text,
                    token.start,
                    token.end,
                )
            elif kind is _Kind.PLUS:
                if not result:
                    raise ParseError("'Or later' modifier requires a license", text, token.start, token.end)
                license = result.pop()
                if not isinstance(license, JustLicense):
                    raise ParseError(
                        "'Or later' modifier can be applied to a license only. "
                        f'Actual argument is {type(license).__name__}: [{license}]',
                        text,
                        token.start,
                        token.end,
                    )
                result.append(or_later(license))
            elif kind is _Kind.LBRACE:
                raise ParseError('Unclosed open brace', text, token.start, token.end)
            else:
                raise ParseError('Extra closing brace', text, token.start, token.end)
        if not result:
            raise ParseError('Result is empty', text, 0)
        if len(result) > 1:
            rendered = ', '.join(str(r) for r in result)
            raise ParseError(
                f'Multiple expressions in the output. Probably, AND/OR is missing: [{rendered}]',
                text,
                0,
            )
        return result[0]


def parse(text: str, registry: LicenseRegistry | None = None) -> LicenseExpression:
    """Parse *text* with a :class:`LicenseExpressionParser`.

    Args:
        text: The license expression.
        registry: Registry used to recognise standard ids.  Defaults to
            the bundled SPDX data.
    """
    return LicenseExpressionParser(registry).parse(text)
