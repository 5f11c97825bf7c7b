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

r"""TF-IDF nearest-neighbour model over short documents.

The model is trained once from ``(document, text)`` pairs and then used
to score free text against every document by cosine similarity.

Pipeline::

    add_document(id, text)        to_model()                 predict(text)
    ──────────────────────▶  tokenize ─▶ histogram  ──▶  idf = ln(N / df)
                                                      ──▶  top terms per doc
                                                      ──▶  unit vectors
                                                               │
                               query ─▶ unit vector ─▶ dot ◀───┘

Only the most distinctive terms of each document are kept (at most 5
per phrase length and 20 overall), which keeps the vocabulary small and
the similarity dominated by specific phrases.

Usage::

    from licensekit.tfidf import TfIdfBuilder

    builder = TfIdfBuilder[str]()
    builder.add_document('MIT', 'MIT License')
    builder.add_document('Apache-2.0', 'Apache License 2.0')
    predictor = builder.build()
    predictor.rank('the apache licence, version 2')[0]  # ('Apache-2.0', ...)
"""

from __future__ import annotations

import json
import math
from collections import Counter
from collections.abc import Callable, Mapping
from pathlib import Path
from typing import Any, Generic, TypeVar

from licensekit.logging import get_logger
from licensekit.tokenizer import tokenize

__all__ = [
    'FORMAT_ID',
    'Model',
    'Predictor',
    'TfIdfBuilder',
]

log = get_logger('licensekit.tfidf')

D = TypeVar('D')

FORMAT_ID = 1

_MAX_TERMS_PER_CLASS = 5
_MAX_TERMS_PER_DOCUMENT = 20


def _unit(vector: dict[int, float]) -> dict[int, float]:
    norm = math.sqrt(sum(v * v for v in vector.values()))
    if norm == 0:
        return {}
    return {k: v / norm for k, v in vector.items()}


def _dot(a: Mapping[int, float], b: Mapping[int, float]) -> float:
    if len(a) > len(b):
        a, b = b, a
    return sum(value * b.get(term_id, 0.0) for term_id, value in a.items())


class TfIdfBuilder(Generic[D]):
    """Accumulates documents and freezes them into a :class:`Model`."""

    def __init__(self) -> None:
        """Create an empty builder."""
        self._documents: dict[D, Counter[str]] = {}
        self._postings: dict[str, set[D]] = {}
        self._built = False

    def add_document(self, document: D, text: str) -> None:
        """Add (or replace) the text for *document*.

        Raises:
            RuntimeError: If :meth:`build` was already called.
        """
        if self._built:
            raise RuntimeError('Cannot add documents after build()')
        previous = self._documents.get(document)
        if previous is not None:
            for term in previous:
                self._postings[term].discard(document)
                if not self._postings[term]:
                    del self._postings[term]
        tokens = tokenize(text)
        self._documents[document] = Counter(tokens)
        for term in tokens:
            self._postings.setdefault(term, set()).add(document)

    def _top_terms(self, counts: Counter[str], idf: Mapping[str, float]) -> list[str]:
        # Counter preserves first-occurrence order and sorted() is stable,
        # so equal scores keep text order.
        ranked = sorted(counts, key=lambda t: counts[t] * idf[t], reverse=True)
        per_class: Counter[int] = Counter()
        kept: list[str] = []
        for term in ranked:
            spaces = term.count(' ')
            per_class[spaces] += 1
            if per_class[spaces] > _MAX_TERMS_PER_CLASS:
                continue
            kept.append(term)
            if len(kept) == _MAX_TERMS_PER_DOCUMENT:
                break
        return kept

    def to_model(self) -> Model[D]:
        """Compute IDF weights and document vectors."""
        n = len(self._documents)
        idf = {term: math.log(n / len(docs)) for term, docs in self._postings.items()}

        retained: set[str] = set()
        for counts in self._documents.values():
            retained.update(self._top_terms(counts, idf))
        terms = sorted(retained)

        vectors: dict[D, dict[int, float]] = {}
        for document, counts in self._documents.items():
            raw = {i: counts[term] * idf[term] for i, term in enumerate(terms) if term in counts}
            vectors[document] = _unit(raw)

        log.debug('tfidf_model_built', documents=n, terms=len(terms))
        return Model(terms, [idf[t] for t in terms], vectors)

    def build(self) -> Predictor[D]:
        """Freeze the builder and return a predictor."""
        model = self.to_model()
        self._built = True
        return model.predictor()


class Model(Generic[D]):
    """Immutable trained model.

    Attributes:
        terms: Sorted vocabulary.
        idf: IDF weight for each vocabulary term (same order as ``terms``).
        vectors: Unit ``term index → weight`` vector per document.
    """

    def __init__(
        self,
        terms: list[str],
        idf: list[float],
        vectors: Mapping[D, Mapping[int, float]],
    ) -> None:
        """Wrap precomputed model data."""
        if len(terms) != len(idf):
            raise ValueError(f'terms and idf must have the same length: {len(terms)} != {len(idf)}')
        self.terms: tuple[str, ...] = tuple(terms)
        self.idf: tuple[float, ...] = tuple(idf)
        self.vectors: dict[D, dict[int, float]] = {doc: dict(vec) for doc, vec in vectors.items()}

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Model):
            return NotImplemented
        return self.terms == other.terms and self.idf == other.idf and self.vectors == other.vectors

    __hash__ = None  # type: ignore[assignment]

    def __repr__(self) -> str:
        return f'Model(terms={len(self.terms)}, documents={len(self.vectors)})'

    def predictor(self) -> Predictor[D]:
        """Return a predictor over this model."""
        return Predictor(self)

    # ── Persistence ──────────────────────────────────────────────────

    def to_dict(self, serialize: Callable[[D], str] = str) -> dict[str, Any]:
        """Return a JSON-compatible representation."""
        return {
            'format': FORMAT_ID,
            'terms': list(self.terms),
            'idf': list(self.idf),
            'documents': {
                serialize(doc): [[i, w] for i, w in sorted(vec.items())] for doc, vec in self.vectors.items()
            },
        }

    @classmethod
    def from_dict(
        cls,
        data: Mapping[str, Any],
        deserialize: Callable[[str], D] = lambda s: s,  # type: ignore[assignment,return-value]
    ) -> Model[D]:
        """Rebuild a model produced by :meth:`to_dict`.

        Raises:
            ValueError: If the format id does not match.
        """
        fmt = data.get('format')
        if fmt != FORMAT_ID:
            raise ValueError(f'Invalid model format. Expecting {FORMAT_ID} got {fmt}')
        vectors = {deserialize(doc): {int(i): float(w) for i, w in pairs} for doc, pairs in data['documents'].items()}
        return cls(list(data['terms']), [float(v) for v in data['idf']], vectors)

    def dump(self, path: Path, serialize: Callable[[D], str] = str) -> None:
        """Write the model to *path* as JSON."""
        path.write_text(json.dumps(self.to_dict(serialize)), encoding='utf-8')

    @classmethod
    def load(
        cls,
        path: Path,
        deserialize: Callable[[str], D] = lambda s: s,  # type: ignore[assignment,return-value]
    ) -> Model[D]:
        """Read a model written by :meth:`dump`."""
        return cls.from_dict(json.loads(path.read_text(encoding='utf-8')), deserialize)


class Predictor(Generic[D]):
    """Scores free text against every document of a :class:`Model`."""

    def __init__(self, model: Model[D]) -> None:
        """Index the model vocabulary."""
        self._model = model
        self._term_ids = {term: i for i, term in enumerate(model.terms)}

    def predict(self, text: str) -> dict[D, float]:
        """Return the cosine similarity of *text* to every document.

        All scores are ``0.0`` when no vocabulary term carries weight.
        """
        counts = Counter(i for i in (self._term_ids.get(t) for t in tokenize(text)) if i is not None)
        query = _unit({i: c * self._model.idf[i] for i, c in counts.items()})
        return {doc: _dot(query, vec) for doc, vec in self._model.vectors.items()}

    def rank(self, text: str, limit: int | None = None) -> list[tuple[D, float]]:
        """Return ``(document, score)`` pairs, best first.

        Ties are broken by the document's string form so the order is
        stable across runs.
        """
        scores = self.predict(text)
        ranked = sorted(scores.items(), key=lambda item: (-item[1], str(item[0])))
        return ranked if limit is None else ranked[:limit]
