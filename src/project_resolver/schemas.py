from dataclasses import dataclass


@dataclass(frozen=True)
class ScoredResult:
    key: str
    name: str
    score: float

    def __post_init__(self):
        """Validate score."""
        if not 0.0 <= self.score <= 1.0:
            raise ValueError(f"Score must be between 0.0 and 1.0, got {self.score}")

    def to_dict(self) -> dict:
        return {"key": self.key, "name": self.name, "score": self.score}
