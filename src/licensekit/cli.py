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

"""Command-line interface for licensekit.

Commands::

    licensekit parse 'mit or (GPL-2.0-only WITH Classpath-exception-2.0)'
    licensekit normalize 'The Apache Software License, Version 2.0' \\
        --uri http://www.apache.org/licenses/LICENSE-2.0.txt
    licensekit bundle 'Apache-2.0;link=https://www.apache.org/licenses/LICENSE-2.0'
    licensekit expand GPL-2.0-or-later
    licensekit check 'MIT OR GPL-3.0-only'
    licensekit classify LICENSE --corpus license-texts/
    licensekit init
    licensekit policy-add reject 'GPL-3.0-only' --reason 'Strong copyleft'

Exit codes:
    0  Success (``check``: the expression is allowed).
    1  ``check`` verdict is UNKNOWN or REJECT; ``normalize``,
       ``bundle`` and ``classify`` found no match.
    2  Usage error, invalid configuration or malformed expression.

Results go to stdout; logs and errors go to stderr.
"""

from __future__ import annotations

import argparse
import dataclasses
import json
import sys
from collections.abc import Sequence
from pathlib import Path

from rich.console import Console
from rich.table import Table
from rich.text import Text

from licensekit import __version__
from licensekit.classifier import LicenseTextClassifier
from licensekit.compat import Verdict
from licensekit.config import CONFIG_FILENAME, LicenseKitConfig, add_policy_rule, load_config, write_default_config
from licensekit.engine import LicenseEngine
from licensekit.errors import LicenseKitError
from licensekit.logging import configure_logging, get_logger
from licensekit.policy import PolicyRule, parse_verdict

__all__ = [
    'build_parser',
    'main',
]

log = get_logger('licensekit.cli')

_VERDICT_STYLE: dict[Verdict, str] = {
    Verdict.ALLOW: 'bold green',
    Verdict.UNKNOWN: 'bold yellow',
    Verdict.REJECT: 'bold red',
}


def _stdout() -> Console:
    return Console(soft_wrap=True, highlight=False, emoji=False)


def _stderr() -> Console:
    return Console(stderr=True, soft_wrap=True, highlight=False, emoji=False)


def _config_path(args: argparse.Namespace) -> Path:
    return Path(args.config) if args.config else Path.cwd() / CONFIG_FILENAME


def _load_config(args: argparse.Namespace) -> LicenseKitConfig:
    """Explicit ``--config`` must exist; the implicit one is optional."""
    path = _config_path(args)
    if args.config or path.is_file():
        return load_config(path)
    return LicenseKitConfig()


def _engine(args: argparse.Namespace) -> LicenseEngine:
    return LicenseEngine.from_config(_load_config(args))


# ── Commands ────────────────────────────────────────────────────────────


def _cmd_parse(args: argparse.Namespace) -> int:
    engine = _engine(args)
    expr = engine.parse(args.expression)
    if args.normalize:
        expr = engine.normalize(expr)
    _stdout().print(str(expr), markup=False)
    return 0


def _cmd_expand(args: argparse.Namespace) -> int:
    engine = _engine(args)
    _stdout().print(str(engine.expand(engine.normalize(args.expression))), markup=False)
    return 0


def _cmd_normalize(args: argparse.Namespace) -> int:
    engine = _engine(args)
    console = _stdout()
    result = engine.normalize_license(args.title, args.uri)
    if args.candidates:
        table = Table(show_header=True, header_style='bold', show_edge=False, pad_edge=False)
        table.add_column('License', style='bold')
        table.add_column('Score', justify='right')
        table.add_column('Title', style='dim')
        for lic, score in engine.normalizer.rank(args.title, args.candidates):
            table.add_row(lic.id, f'{score * 100:.1f}', lic.title)
        console.print(table)
    if result is None:
        _stderr().print(Text(f'Unable to resolve license {args.title!r}', style='bold red'))
        return 1
    console.print(str(result), markup=False)
    return 0


def _cmd_bundle(args: argparse.Namespace) -> int:
    result = _engine(args).parse_bundle_license(args.value, 'command line')
    if result is None:
        _stderr().print(Text(f'Unable to read Bundle-License {args.value!r}', style='bold red'))
        return 1
    _stdout().print(str(result), markup=False)
    return 0


def _cmd_check(args: argparse.Namespace) -> int:
    engine = _engine(args)
    report = engine.check(args.expression)
    result = report.result
    console = _stdout()
    if args.json:
        payload = {
            'expression': str(report.expression),
            'normalized': str(report.normalized),
            'expanded': str(report.expanded),
            'verdict': result.verdict.value,
            'reasons': list(result.reasons),
        }
        console.print(json.dumps(payload, indent=2), markup=False)
    else:
        header = Text()
        header.append(result.verdict.name, style=_VERDICT_STYLE[result.verdict])
        header.append(f' {report.normalized}')
        console.print(header)
        for reason in result.reasons:
            console.print(Text(f'  - {reason}'))
    return 0 if result.allowed else 1


def _cmd_classify(args: argparse.Namespace) -> int:
    config = _load_config(args)
    if not (args.model or args.corpus):
        raise LicenseKitError('classify needs --corpus DIR or --model FILE')
    try:
        if args.model:
            classifier = LicenseTextClassifier.load(Path(args.model), similarity_threshold=config.similarity_threshold)
        else:
            classifier = LicenseTextClassifier.from_directory(
                Path(args.corpus), similarity_threshold=config.similarity_threshold
            )
    except ValueError as exc:
        raise LicenseKitError(str(exc)) from exc
    if args.save_model:
        classifier.save(Path(args.save_model))
        log.info('model_saved', path=args.save_model)

    text = Path(args.file).read_text(encoding='utf-8', errors='replace')
    result = classifier.classify(text, limit=args.top)
    console = _stdout()
    table = Table(show_header=True, header_style='bold', show_edge=False, pad_edge=False)
    table.add_column('License', style='bold')
    table.add_column('Score', justify='right')
    for license_id, score in result.candidates:
        table.add_row(license_id, f'{score * 100:.1f}')
    console.print(table)
    if result.license_id is None:
        _stderr().print(Text(f'No license in the corpus matches {args.file}', style='bold red'))
        return 1
    console.print(result.license_id, markup=False)
    return 0


def _cmd_init(args: argparse.Namespace) -> int:
    path = Path(args.path) if args.path else _config_path(args)
    write_default_config(path, force=args.force)
    _stdout().print(f'Wrote {path}', markup=False)
    return 0


def _cmd_policy_add(args: argparse.Namespace) -> int:
    try:
        verdict = parse_verdict(args.verdict)
    except ValueError as exc:
        raise LicenseKitError(str(exc)) from exc
    path = _config_path(args)
    config = _load_config(args)
    rule = PolicyRule(tuple(args.licenses), verdict, args.reason)
    # The combined policy must parse and have no overlaps before the file changes.
    LicenseEngine.from_config(dataclasses.replace(config, policy=(*config.policy, rule)))
    add_policy_rule(path, rule)
    _stdout().print(f'Added {verdict.name} rule for {", ".join(args.licenses)} to {path}', markup=False)
    return 0


# ── Entry point ─────────────────────────────────────────────────────────


def build_parser() -> argparse.ArgumentParser:
    """Return the argument parser for the ``licensekit`` command."""
    parser = argparse.ArgumentParser(
        prog='licensekit',
        description='Parse, normalize and check license expressions.',
    )
    parser.add_argument('--version', action='version', version=f'%(prog)s {__version__}')
    verbosity = parser.add_mutually_exclusive_group()
    verbosity.add_argument('-v', '--verbose', action='store_true', help='Enable debug logging.')
    verbosity.add_argument('-q', '--quiet', action='store_true', help='Only log warnings and errors.')
    parser.add_argument('--json-log', action='store_true', help='Emit logs as JSON lines.')
    parser.add_argument('--config', metavar='PATH', help=f'Configuration file (default: ./{CONFIG_FILENAME}).')

    sub = parser.add_subparsers(dest='command', required=True)

    p = sub.add_parser('parse', help='Parse an expression and print its canonical form.')
    p.add_argument('expression')
    p.add_argument('--normalize', action='store_true', help='Also resolve free-text license names.')
    p.set_defaults(func=_cmd_parse)

    p = sub.add_parser('normalize', help='Map a license title to a standard identifier.')
    p.add_argument('title')
    p.add_argument('--uri', action='append', default=[], help='License URL (repeatable).')
    p.add_argument('--candidates', type=int, default=0, metavar='N', help='Show the N best title matches.')
    p.set_defaults(func=_cmd_normalize)

    p = sub.add_parser('bundle', help='Read an OSGi Bundle-License header value.')
    p.add_argument('value')
    p.set_defaults(func=_cmd_bundle)

    p = sub.add_parser('expand', help='Expand version ranges into concrete licenses.')
    p.add_argument('expression')
    p.set_defaults(func=_cmd_expand)

    p = sub.add_parser('check', help='Evaluate an expression against the policy.')
    p.add_argument('expression')
    p.add_argument('--json', action='store_true', help='Print the result as JSON.')
    p.set_defaults(func=_cmd_check)

    p = sub.add_parser('classify', help='Identify the license of a text file.')
    p.add_argument('file')
    source = p.add_mutually_exclusive_group()
    source.add_argument('--corpus', metavar='DIR', help='Directory of <license-id>.txt files.')
    source.add_argument('--model', metavar='FILE', help='Model saved with --save-model.')
    p.add_argument('--save-model', metavar='FILE', help='Save the trained model as JSON.')
    p.add_argument('--top', type=int, default=5, help='Number of candidates to show.')
    p.set_defaults(func=_cmd_classify)

    p = sub.add_parser('init', help='Write a starter configuration file.')
    p.add_argument('path', nargs='?')
    p.add_argument('--force', action='store_true', help='Overwrite an existing file.')
    p.set_defaults(func=_cmd_init)

    p = sub.add_parser('policy-add', help='Append a policy rule to the configuration file.')
    p.add_argument('verdict', help='allow, unknown or reject.')
    p.add_argument('licenses', nargs='+', metavar='LICENSE')
    p.add_argument('--reason', default='', help='Justification shown in reports.')
    p.set_defaults(func=_cmd_policy_add)

    return parser


def main(argv: Sequence[str] | None = None) -> int:
    """Run the CLI and return the process exit code."""
    args = build_parser().parse_args(argv)
    configure_logging(verbose=args.verbose, quiet=args.quiet, json_log=args.json_log)
    try:
        return args.func(args)
    except LicenseKitError as exc:
        _stderr().print(Text(f'error: {exc}', style='bold red'))
        return 2
    except OSError as exc:
        _stderr().print(Text(f'error: {exc}', style='bold red'))
        return 2


if __name__ == '__main__':
    sys.exit(main())
