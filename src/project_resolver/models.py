from dataclasses import dataclass, field
from enum import Enum
from typing import List


@dataclass(frozen=True)
class ProjectRef:
    """A project as reported by the project directory."""
    key: str
    name: str


@dataclass
class ProjectEntry:
    key: str
    name: str
    vector: List[float] = field(default_factory=list)


class CandidateOrigin(str, Enum):
    RAW = "raw"
    TRANSLITERATION_VARIANT = "transliteration_variant"


@dataclass(frozen=True)
class SearchCandidate:
    """
    One string derived from a query that is embedded and searched.

    Lower rank means more plausible; the raw query always has rank 0.
    """
    text: str
    origin: CandidateOrigin
    rank: int
