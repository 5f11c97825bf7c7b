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

"""Tests for licensekit.engine."""

from __future__ import annotations

from pathlib import Path

import pytest
from licensekit.compat import Verdict
from licensekit.config import EquivalenceRule, LicenseKitConfig
from licensekit.engine import LicenseEngine
from licensekit.errors import ConfigError, PolicyConfigurationError
from licensekit.parser import parse
from licensekit.policy import PolicyRule

_POLICY = (
    PolicyRule(('MIT', 'Apache-2.0'), Verdict.ALLOW, 'Permissive license'),
    PolicyRule(('GPL-3.0-only',), Verdict.REJECT, 'Strong copyleft'),
)


@pytest.fixture(scope='module')
def engine() -> LicenseEngine:
    """Engine with a two-rule policy."""
    return LicenseEngine.from_config(LicenseKitConfig(policy=_POLICY))


class TestCheck:
    """Tests for LicenseEngine.check()."""

    def test_allowed(self, engine: LicenseEngine) -> None:
        """Test allowed."""
        report = engine.check('MIT OR GPL-3.0-only')
        assert report.result.verdict is Verdict.ALLOW
        assert report.result.reasons == ('MIT: Permissive license',)

    def test_or_later_expanded(self, engine: LicenseEngine) -> None:
        """Test or later expanded."""
        report = engine.check('GPL-2.0-or-later')
        assert str(report.expanded) == 'GPL-2.0-only OR GPL-3.0-only'
        assert report.result.verdict is Verdict.UNKNOWN

    def test_and_rejected(self, engine: LicenseEngine) -> None:
        """Test and rejected."""
        report = engine.check('MIT AND GPL-3.0-only')
        assert report.result.verdict is Verdict.REJECT
        assert report.result.reasons == ('GPL-3.0-only: Strong copyleft',)

    def test_report_keeps_input(self, engine: LicenseEngine) -> None:
        """Test report keeps input."""
        report = engine.check('MIT')
        assert report.expression == report.normalized == report.expanded == parse('MIT')


class TestEngineParts:
    """Tests for the individual pipeline steps."""

    def test_parse(self, engine: LicenseEngine) -> None:
        """Test parse."""
        assert str(engine.parse('mit or Apache-2.0')) == 'Apache-2.0 OR mit'

    def test_normalize_string(self, engine: LicenseEngine) -> None:
        """Test normalize string."""
        assert engine.normalize('NOASSERTION') == parse('NOASSERTION')

    def test_normalize_license(self, engine: LicenseEngine) -> None:
        """Test normalize license."""
        result = engine.normalize_license(
            'The Apache Software License, Version 1.1', ['http://www.apache.org/licenses/LICENSE-1.1.txt']
        )
        assert result == parse('Apache-1.1')

    def test_expand(self, engine: LicenseEngine) -> None:
        """Test expand."""
        assert engine.expand('GPL-3.0-or-later') == parse('GPL-3.0-only')

    def test_evaluate(self, engine: LicenseEngine) -> None:
        """Test evaluate."""
        assert engine.evaluate(None).verdict is Verdict.REJECT
        assert engine.evaluate('Apache-2.0').allowed

    def test_parse_bundle_license(self, engine: LicenseEngine) -> None:
        """Test parse bundle license."""
        assert engine.parse_bundle_license('Apache-2.0;link=https://example.org') == parse('Apache-2.0')
        assert engine.parse_bundle_license('MIT,Apache-2.0') is None


class TestFromConfig:
    """Tests for LicenseEngine.from_config()."""

    def test_defaults(self) -> None:
        """Test defaults."""
        engine = LicenseEngine.from_config()
        assert len(engine.policy) == 0
        assert engine.evaluate('MIT').verdict is Verdict.UNKNOWN

    def test_user_equivalence(self) -> None:
        """A user rule lets an allowed license stand in for another."""
        config = LicenseKitConfig(
            equivalence=(EquivalenceRule('LicenseRef-Internal', ('MIT',)),),
            policy=_POLICY,
        )
        engine = LicenseEngine.from_config(config)
        assert engine.expand('LicenseRef-Internal') == parse('MIT')
        assert engine.evaluate('LicenseRef-Internal').allowed

    def test_bad_equivalence(self) -> None:
        """Test bad equivalence."""
        config = LicenseKitConfig(equivalence=(EquivalenceRule('MIT OR', ('MIT',)),))
        with pytest.raises(ConfigError, match=r'equivalence\[0\]'):
            LicenseEngine.from_config(config)

    def test_overlapping_policy(self) -> None:
        """Test overlapping policy."""
        config = LicenseKitConfig(
            policy=(
                PolicyRule(('GPL-2.0-or-later',), Verdict.ALLOW),
                PolicyRule(('GPL-3.0-only',), Verdict.REJECT),
            )
        )
        with pytest.raises(PolicyConfigurationError):
            LicenseEngine.from_config(config)

    def test_user_licenses(self, tmp_path: Path) -> None:
        """Test user licenses."""
        path = tmp_path / 'extra.toml'
        path.write_text('[licenses."LicenseRef-Acme"]\nname = "Acme Corporate License"\n', encoding='utf-8')
        engine = LicenseEngine.from_config(LicenseKitConfig(licenses_toml=path))
        assert engine.normalize_license('Acme Corporate License') == parse('LicenseRef-Acme', engine.registry)
        assert 'LicenseRef-Acme' in engine.registry

    def test_bundle_license_uses_user_registry(self, tmp_path: Path) -> None:
        """Bundle-License URLs resolve against user license data."""
        path = tmp_path / 'extra.toml'
        path.write_text(
            '[licenses."LicenseRef-Acme"]\nname = "Acme Corporate License"\n'
            'see_also = ["https://acme.example/license"]\n',
            encoding='utf-8',
        )
        engine = LicenseEngine.from_config(LicenseKitConfig(licenses_toml=path))
        result = engine.parse_bundle_license('https://acme.example/license.txt', 'acme.jar')
        assert result == parse('LicenseRef-Acme', engine.registry)
