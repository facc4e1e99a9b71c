"""
Latin/Cyrillic transliteration for project resolution.

Three operations:
- transliterate: deterministic Cyrillic -> Latin
- reverse_transliterate: deterministic Latin -> Cyrillic (longest cluster first)
- enumerate_variants: ambiguous Latin -> Cyrillic expansion, e.g.
  "aitech" -> ["аитеч", "аитех", ..., "айтех", ...]

All functions are pure.
"""
import re
from typing import Dict, List, Tuple


CYRILLIC_TO_LATIN: Dict[str, str] = {
    "а": "a", "б": "b", "в": "v", "г": "g", "д": "d",
    "е": "e", "ё": "yo", "ж": "zh", "з": "z", "и": "i",
    "й": "y", "к": "k", "л": "l", "м": "m", "н": "n",
    "о": "o", "п": "p", "р": "r", "с": "s", "т": "t",
    "у": "u", "ф": "f", "х": "kh", "ц": "ts", "ч": "ch",
    "ш": "sh", "щ": "shch", "ъ": "", "ы": "y", "ь": "",
    "э": "e", "ю": "yu", "я": "ya",
}

LATIN_TO_CYRILLIC: Dict[str, str] = {
    "shch": "щ",
    "kh": "х", "ts": "ц", "ch": "ч", "sh": "ш",
    "yo": "ё", "zh": "ж", "yu": "ю", "ya": "я",
    "a": "а", "b": "б", "v": "в", "g": "г", "d": "д",
    "e": "е", "z": "з", "i": "и", "y": "й", "k": "к",
    "l": "л", "m": "м", "n": "н", "o": "о", "p": "п",
    "r": "р", "s": "с", "t": "т", "u": "у", "f": "ф",
}

# Multi-letter clusters for ambiguous expansion and their alternatives.
# "ch" also maps to "х" so that borrowings like "tech" reach "тех".
VARIANT_CLUSTERS: Dict[str, Tuple[str, ...]] = {
    "shch": ("щ",),
    "sch": ("щ", "шч"),
    "yo": ("ё", "йо", "ио"),
    "yu": ("ю", "йу", "иу"),
    "ya": ("я", "йа", "иа"),
    "kh": ("х",),
    "zh": ("ж",),
    "ts": ("ц",),
    "ch": ("ч", "х"),
    "sh": ("ш",),
}

VARIANT_LETTERS: Dict[str, Tuple[str, ...]] = {
    "a": ("а",),
    "b": ("б",),
    "v": ("в",),
    "g": ("г",),
    "d": ("д",),
    "e": ("е", "э"),
    "z": ("з",),
    "i": ("и", "ай", "й"),
    "y": ("й", "ы", "и"),
    "k": ("к",),
    "l": ("л",),
    "m": ("м",),
    "n": ("н",),
    "o": ("о",),
    "p": ("п",),
    "r": ("р",),
    "s": ("с",),
    "t": ("т",),
    "u": ("у", "ю"),
    "f": ("ф",),
    "h": ("х",),
    "c": ("к", "с"),
    "j": ("дж", "ж", "й"),
    "q": ("к",),
    "w": ("в", "у"),
    "x": ("кс", "з"),
}

_REVERSE_CLUSTERS = sorted(
    (k for k in LATIN_TO_CYRILLIC if len(k) > 1), key=len, reverse=True
)
_VARIANT_CLUSTER_ORDER = sorted(VARIANT_CLUSTERS, key=len, reverse=True)

_CYRILLIC_RE = re.compile(r"[а-яё]", re.IGNORECASE)
_LATIN_RE = re.compile(r"[a-z]", re.IGNORECASE)


def contains_cyrillic(text: str) -> bool:
    return bool(_CYRILLIC_RE.search(text or ""))


def contains_latin(text: str) -> bool:
    return bool(_LATIN_RE.search(text or ""))


def transliterate(text: str) -> str:
    """Cyrillic -> Latin. Lowercases; unmapped characters pass through."""
    return "".join(CYRILLIC_TO_LATIN.get(ch, ch) for ch in text.lower())


def reverse_transliterate(text: str) -> str:
    """
    Latin -> Cyrillic, replacing the longest known cluster at each position.

    :param text: Latin text (any case)
    :return: lowercase Cyrillic rendering; unmapped characters pass through
    """
    source = text.lower()
    out: List[str] = []
    idx = 0
    while idx < len(source):
        for cluster in _REVERSE_CLUSTERS:
            if source.startswith(cluster, idx):
                out.append(LATIN_TO_CYRILLIC[cluster])
                idx += len(cluster)
                break
        else:
            ch = source[idx]
            out.append(LATIN_TO_CYRILLIC.get(ch, ch))
            idx += 1
    return "".join(out)


def enumerate_variants(text: str, max_results: int = 20) -> List[str]:
    """
    Enumerate plausible Cyrillic spellings of a Latin string.

    Depth-first over the input: at each position the longest matching
    cluster wins and the search branches over its alternatives (a matched
    cluster is never split into single letters). Otherwise one character is
    consumed and the search branches over that letter's alternatives, or the
    literal character when there are none. Traversal stops as soon as
    max_results complete strings exist.

    :param text: Input text; lowercased before expansion
    :param max_results: Cap on complete strings produced
    :return: Unique variants sorted by (length, lexicographic)
    """
    if max_results <= 0:
        return []

    source = text.lower()
    results: List[str] = []
    # Explicit stack keeps recursion depth off the interpreter stack.
    # Alternatives are pushed in reverse so they pop in declaration order.
    stack: List[Tuple[int, str]] = [(0, "")]

    while stack and len(results) < max_results:
        idx, acc = stack.pop()
        if idx >= len(source):
            results.append(acc)
            continue

        step, alternatives = _next_alternatives(source, idx)
        for alternative in reversed(alternatives):
            stack.append((idx + step, acc + alternative))

    return sorted(set(results), key=lambda v: (len(v), v))


def _next_alternatives(source: str, idx: int) -> Tuple[int, Tuple[str, ...]]:
    """Return (characters consumed, alternatives) at position idx."""
    for cluster in _VARIANT_CLUSTER_ORDER:
        if source.startswith(cluster, idx):
            return len(cluster), VARIANT_CLUSTERS[cluster]
    ch = source[idx]
    return 1, VARIANT_LETTERS.get(ch, (ch,))
