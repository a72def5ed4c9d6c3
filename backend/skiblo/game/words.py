from __future__ import annotations

import random
from typing import Iterable, Sequence


DEFAULT_WORDS_NL: tuple[str, ...] = (
    "Fiets", "Kaas", "Molen", "Tulpen", "Klomp", "Hond", "Kat", "Huis", "Boom", "Zon",
    "Strand", "Bal", "Computer", "Telefoon", "Auto", "Vliegtuig", "Boot", "Vis",
    "Appel", "Banaan", "Olifant", "Giraffe", "Kasteel", "Ridder", "Prinses",
    "Draak", "Tovenaar", "Spook", "Pompoen", "Sneeuwpop", "Kerstman", "Cadeau",
    "Taart", "IJsje", "Pizza", "Hamburger", "Patat", "Pannenkoek", "Wafel",
    "Koffie", "Thee", "Melk", "Water", "Vuur", "Aarde", "Lucht", "Regen",
    "Sneeuw", "Wind", "Storm", "Bliksem", "Regenboog", "Ster", "Maan",
)


def normalize_words(words: Iterable[str]) -> list[str]:
    """Strip, drop blanks and drop case-insensitive duplicates, keeping order."""
    seen: set[str] = set()
    out: list[str] = []
    for w in words:
        if not isinstance(w, str):
            continue
        word = w.strip()
        key = word.casefold()
        if not word or key in seen:
            continue
        seen.add(key)
        out.append(word)
    return out


def pick_words(words: Sequence[str], count: int, rng: random.Random | None = None) -> list[str]:
    """Sample ``count`` distinct words with a partial Fisher-Yates shuffle.

    ``count`` is clamped to ``[0, len(words)]``.
    """
    rng = rng or random.Random()
    pool = list(words)
    k = max(0, min(int(count), len(pool)))
    for i in range(k):
        j = rng.randrange(i, len(pool))
        pool[i], pool[j] = pool[j], pool[i]
    return pool[:k]


class WordCatalog:
    def __init__(self, words: Iterable[str] = DEFAULT_WORDS_NL, rng: random.Random | None = None):
        self._words = normalize_words(words)
        self._rng = rng or random.Random()

    @classmethod
    def with_custom_words(
        cls,
        custom_words: Iterable[str],
        rng: random.Random | None = None,
    ) -> "WordCatalog":
        return cls(list(custom_words) + list(DEFAULT_WORDS_NL), rng=rng)

    def __len__(self) -> int:
        return len(self._words)

    @property
    def words(self) -> tuple[str, ...]:
        return tuple(self._words)

    def draw(self, count: int) -> list[str]:
        return pick_words(self._words, count, self._rng)
