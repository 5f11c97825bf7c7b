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

"""Text to term tokenizer for license titles and texts.

Produces unigrams followed by space-joined bigrams and trigrams so that
phrases like ``"apache license 2.0"`` become single, highly specific
terms in the TF-IDF vocabulary.

Usage::

    from licensekit.tokenizer import tokenize

    tokenize('The Apache Software License, Version 2.0')
    # ['apache', 'license', '2.0', 'apache license', 'license 2.0',
    #  'apache license 2.0']
"""

from __future__ import annotations

import re

__all__ = [
    'NORMALIZE',
    'STOP_WORDS',
    'tokenize',
]

_TAG = re.compile(r'<[^>]*>')
_COPYRIGHT = re.compile(r'((copyright|©|\(c\))+\s*)+')
# Anything but a letter, digit, '-' or '.'; a '.' glued to the previous
# word by whitespace; 'v' in front of a version number; a trailing '.'.
_SEPARATOR = re.compile(r'(?:\s\.|[^\w.\-]|_|v(?=\d)|\.(?=\s|$))+')
_PUNCTUATION_ONLY = re.compile(r'[-.]+')

STOP_WORDS: frozenset[str] = frozenset({'the', 'version', 'software'})

# British spellings and stylistic variants mapped to one canonical form.
NORMALIZE: dict[str, str] = {
    'acknowledgment': 'acknowledgement',
    'analogue': 'analog',
    'analyse': 'analyze',
    'artefact': 'artifact',
    'authorisation': 'authorization',
    'authorised': 'authorized',
    'calibre': 'caliber',
    'cancelled': 'canceled',
    'apitalisations': 'apitalizations',
    'catalogue': 'catalog',
    'categorise': 'categorize',
    'centre': 'center',
    'emphasised': 'emphasized',
    'favour': 'favor',
    'favourite': 'favorite',
    'fulfil': 'fulfill',
    'fulfilment': 'fulfillment',
    'initialise': 'initialize',
    'judgment': 'judgement',
    'labelling': 'labeling',
    'labour': 'labor',
    'licence': 'license',
    'maximise': 'maximize',
    'modelled': 'modeled',
    'modelling': 'modeling',
    'offence': 'offense',
    'optimise': 'optimize',
    'organisation': 'organization',
    'organise': 'organize',
    'practise': 'practice',
    'programme': 'program',
    'realise': 'realize',
    'recognise': 'recognize',
    'signalling': 'signaling',
    'utilisation': 'utilization',
    'whilst': 'while',
    'wilful': 'wilfull',
    'non-ommercial': 'noncommercial',
    'copyright-owner': 'copyright-holder',
    'sublicense': 'sub-license',
    'non-infringement': 'noninfringement',
}


def _words(text: str) -> list[str]:
    text = _TAG.sub(' ', text).lower()
    text = _COPYRIGHT.sub('copyright ', text)
    words = []
    for word in _SEPARATOR.split(text):
        if not word or _PUNCTUATION_ONLY.fullmatch(word):
            continue
        word = NORMALIZE.get(word, word)
        if word in STOP_WORDS:
            continue
        words.append(word)
    return words


def tokenize(text: str) -> list[str]:
    """Split *text* into normalized terms.

    Args:
        text: A license title, URL or full license text.

    Returns:
        Unigrams in text order, then every contiguous bigram, then every
        contiguous trigram.  Repeated terms are kept so callers can count
        term frequency.
    """
    words = _words(text)
    bigrams = [' '.join(words[i : i + 2]) for i in range(len(words) - 1)]
    trigrams = [' '.join(words[i : i + 3]) for i in range(len(words) - 2)]
    return words + bigrams + trigrams
