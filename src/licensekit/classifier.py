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

"""Identify a license from the full text of a LICENSE file.

The classifier is a TF-IDF model trained on canonical license texts.
A corpus directory holds one ``<license-id>.txt`` file per license::

    corpus/
      Apache-2.0.txt
      MIT.txt
      BSD-3-Clause.txt

A trained model can be saved as JSON and loaded again without the corpus.

Usage::

    classifier = LicenseTextClassifier.from_directory(Path('corpus'))
    result = classifier.classify(Path('LICENSE').read_text())
    result.license_id  # 'Apache-2.0'
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass
from pathlib import Path

from licensekit.errors import UnresolvedLicenseError
from licensekit.logging import get_logger
from licensekit.normalizer import DEFAULT_SIMILARITY_THRESHOLD
from licensekit.tfidf import Model, TfIdfBuilder

__all__ = [
    'Classification',
    'LicenseTextClassifier',
]

log = get_logger('licensekit.classifier')


@dataclass(frozen=True)
class Classification:
    """Result of classifying one text.

    Attributes:
        license_id: Best match, or ``None`` when no candidate beats the
            similarity threshold.
        score: Similarity of the best candidate (0.0 to 1.0).
        candidates: Best ``(license_id, score)`` pairs, best first.
    """

    license_id: str | None
    score: float
    candidates: tuple[tuple[str, float], ...]


class LicenseTextClassifier:
    """Nearest-neighbour classifier over license texts."""

    def __init__(self, model: Model[str], *, similarity_threshold: float = DEFAULT_SIMILARITY_THRESHOLD) -> None:
        """Wrap a trained model.

        Args:
            model: TF-IDF model keyed by license id.
            similarity_threshold: Minimum score (0 to 100) to accept the
                best candidate.
        """
        self.model = model
        self.similarity_threshold = similarity_threshold
        self._predictor = model.predictor()

    @classmethod
    def from_texts(
        cls,
        texts: Mapping[str, str],
        *,
        similarity_threshold: float = DEFAULT_SIMILARITY_THRESHOLD,
    ) -> LicenseTextClassifier:
        """Train on a ``license id -> text`` mapping.

        Raises:
            ValueError: If *texts* is empty.
        """
        if not texts:
            raise ValueError('Cannot train a classifier without license texts')
        builder = TfIdfBuilder[str]()
        for license_id, text in texts.items():
            builder.add_document(license_id, text)
        return cls(builder.to_model(), similarity_threshold=similarity_threshold)

    @classmethod
    def from_directory(
        cls,
        corpus: Path,
        *,
        similarity_threshold: float = DEFAULT_SIMILARITY_THRESHOLD,
    ) -> LicenseTextClassifier:
        """Train on every ``*.txt`` file in *corpus* (id = file stem).

        Raises:
            ValueError: If the directory holds no ``.txt`` files.
        """
        texts = {
            path.stem: path.read_text(encoding='utf-8', errors='replace') for path in sorted(corpus.glob('*.txt'))
        }
        if not texts:
            raise ValueError(f'No *.txt license texts found in {corpus}')
        log.debug('corpus_loaded', corpus=str(corpus), licenses=len(texts))
        return cls.from_texts(texts, similarity_threshold=similarity_threshold)

    @classmethod
    def load(cls, path: Path, *, similarity_threshold: float = DEFAULT_SIMILARITY_THRESHOLD) -> LicenseTextClassifier:
        """Load a model saved with :meth:`save`."""
        return cls(Model.load(path), similarity_threshold=similarity_threshold)

    def save(self, path: Path) -> None:
        """Write the trained model to *path* as JSON."""
        self.model.dump(path)

    def classify(self, text: str, *, limit: int = 5) -> Classification:
        """Score *text* against every known license."""
        candidates = tuple(self._predictor.rank(text, limit))
        if not candidates:
            return Classification(None, 0.0, ())
        best, score = candidates[0]
        accepted = best if score * 100 > self.similarity_threshold else None
        log.debug('text_classified', license=accepted, best=best, score=round(score * 100, 1))
        return Classification(accepted, score, candidates)

    def guess(self, text: str) -> str:
        """Return the best license id for *text*.

        Raises:
            UnresolvedLicenseError: If no candidate beats the threshold.
        """
        result = self.classify(text)
        if result.license_id is None:
            excerpt = ' '.join(text.split())[:60]
            raise UnresolvedLicenseError(excerpt, result.candidates)
        return result.license_id
