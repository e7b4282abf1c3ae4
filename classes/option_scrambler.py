"""
Answer option randomisation.

``mapping[display_index] == canonical_index``. A mapping is produced once
per question per attempt and must be reused for every re-render of that
question and for translating the selected answer back before submission.
"""
import random
from collections import namedtuple

OPTION_COUNT = 4

Scrambled = namedtuple("Scrambled", ["display_order", "mapping"])

_rng = random.SystemRandom()


def scramble(options, rng=None):
    """Uniform (Fisher-Yates) permutation of the four options."""
    if len(options) != OPTION_COUNT:
        raise ValueError(f"Expected {OPTION_COUNT} options, got {len(options)}.")
    rng = rng or _rng
    mapping = list(range(OPTION_COUNT))
    for i in range(OPTION_COUNT - 1, 0, -1):
        j = rng.randint(0, i)
        mapping[i], mapping[j] = mapping[j], mapping[i]
    return Scrambled([options[canonical] for canonical in mapping], mapping)


def unscramble(mapping, display_index):
    if display_index is None:
        return None
    if not 0 <= display_index < len(mapping):
        raise ValueError(f"Display index {display_index} is out of range.")
    return mapping[display_index]


class ScrambleMap:
    """Per-attempt store of scramble mappings, keyed by question id."""

    def __init__(self, rng=None):
        self._rng = rng
        self._scrambled = {}

    def get(self, question_id, options):
        if question_id not in self._scrambled:
            self._scrambled[question_id] = scramble(options, self._rng)
        return self._scrambled[question_id]

    def mapping_for(self, question_id):
        try:
            return self._scrambled[question_id].mapping
        except KeyError:
            raise KeyError(f"Question {question_id} was never displayed.") from None

    def unscramble(self, question_id, display_index):
        if display_index is None:
            return None
        return unscramble(self.mapping_for(question_id), display_index)

    def __len__(self):
        return len(self._scrambled)
