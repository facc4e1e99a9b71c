"""
Typo-tolerant similarity for short words and phrases.

Handles typos, joined/split spelling ("AITECH" ~ "AI TECH") and penalizes
word reordering ("TECH AI").
"""
import re
import unicodedata
from functools import lru_cache
from typing import List, Tuple

from rapidfuzz.distance import OSA

_WORD_RE = re.compile(r"\w+", re.UNICODE)


def _normalize(text: str) -> Tuple[List[str], str]:
    decomposed = unicodedata.normalize("NFKD", text)
    stripped = "".join(ch for ch in decomposed if not unicodedata.combining(ch))
    tokens = _WORD_RE.findall(stripped.lower())
    return tokens, "".join(tokens)


@lru_cache(maxsize=4096)
def char_similarity(a: str, b: str) -> float:
    """1 - OSA distance / longer length; 1.0 for two empty strings."""
    if not a and not b:
        return 1.0
    if not a or not b:
        return 0.0
    return OSA.normalized_similarity(a, b)


def token_similarity(tokens_a: List[str], tokens_b: List[str]) -> float:
    """
    Order-aware token alignment (weighted LCS over pairwise char similarity).

    Normalized by the longer token list, so missing or swapped words cost.
    """
    n, m = len(tokens_a), len(tokens_b)
    if n == 0 and m == 0:
        return 1.0
    if n == 0 or m == 0:
        return 0.0

    dp = [[0.0] * (m + 1) for _ in range(n + 1)]
    for i in range(1, n + 1):
        for j in range(1, m + 1):
            dp[i][j] = max(
                dp[i - 1][j],
                dp[i][j - 1],
                dp[i - 1][j - 1] + char_similarity(tokens_a[i - 1], tokens_b[j - 1]),
            )
    return dp[n][m] / max(n, m)


def phrase_similarity(a: str, b: str) -> float:
    """
    Combined phrase similarity in [0, 1].

    :param a: First phrase
    :param b: Second phrase
    :return: max(0.6 * compact char similarity + 0.4 * token similarity,
             0.9 * compact char similarity)
    """
    tokens_a, compact_a = _normalize(a)
    tokens_b, compact_b = _normalize(b)

    sim_char = char_similarity(compact_a, compact_b)
    sim_tok = token_similarity(tokens_a, tokens_b)

    combo = 0.6 * sim_char + 0.4 * sim_tok
    return max(combo, sim_char * 0.9)
