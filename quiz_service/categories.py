from dataclasses import dataclass, field, fields
from enum import Enum
from typing import Iterator, Optional

MIXED = "mixed"


class Category(str, Enum):
    CHARACTERS = "characters"
    EVENTS = "events"
    THEMES = "themes"
    CULTURE = "culture"

    @classmethod
    def parse(cls, value: Optional[str]) -> Optional["Category"]:
        """None or "mixed" means no category filter."""
        if value is None or value == MIXED:
            return None
        return cls(value)

    @classmethod
    def lookup(cls, value: str) -> Optional["Category"]:
        try:
            return cls(value)
        except ValueError:
            return None


class Difficulty(str, Enum):
    EASY = "easy"
    MEDIUM = "medium"
    HARD = "hard"

    @classmethod
    def parse(cls, value: Optional[str]) -> Optional["Difficulty"]:
        if value is None or value == MIXED:
            return None
        return cls(value)


@dataclass
class CategoryTally:
    correct: int = 0
    total: int = 0

    def record(self, is_correct: bool) -> None:
        self.total += 1
        if is_correct:
            self.correct += 1

    @property
    def ratio(self) -> Optional[float]:
        if self.total == 0:
            return None
        return self.correct / self.total

    def __add__(self, other: "CategoryTally") -> "CategoryTally":
        return CategoryTally(self.correct + other.correct, self.total + other.total)


@dataclass
class CategoryBreakdown:
    """
    One {correct, total} pair per category. The field set mirrors Category
    exactly, so a breakdown can never grow or lose a bucket.
    """
    characters: CategoryTally = field(default_factory=CategoryTally)
    events: CategoryTally = field(default_factory=CategoryTally)
    themes: CategoryTally = field(default_factory=CategoryTally)
    culture: CategoryTally = field(default_factory=CategoryTally)

    def __getitem__(self, category: Category) -> CategoryTally:
        return getattr(self, category.value)

    def items(self) -> Iterator[tuple[Category, CategoryTally]]:
        for f in fields(self):
            yield Category(f.name), getattr(self, f.name)

    def as_dict(self) -> dict[str, dict[str, int]]:
        return {c.value: {"correct": t.correct, "total": t.total} for c, t in self.items()}

    @classmethod
    def from_dict(cls, raw: dict) -> "CategoryBreakdown":
        out = cls()
        for category, tally in out.items():
            bucket = raw.get(category.value) or {}
            tally.correct = int(bucket.get("correct", 0))
            tally.total = int(bucket.get("total", 0))
        return out
