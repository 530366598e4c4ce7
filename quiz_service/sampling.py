"""
Stratified package sampling.

Two phases over the filtered question pool:

1. Rank. The pool is partitioned by whichever of (category, difficulty) the
   request leaves "mixed". Every partition is shuffled independently and only
   its top `quota` rows are kept, so a dominant category or difficulty cannot
   crowd out the rarer ones.
2. Draw. The package is drawn from the capped pool by dealing one row at a
   time from each category in turn (categories in random order, rows by rank),
   then shuffled so the package is not grouped.

A fresh random.Random is used per request; nothing about earlier packages is
remembered.
"""
import logging
import math
import random
from collections import defaultdict
from dataclasses import dataclass
from typing import Optional

from sqlalchemy.orm import Session
from .categories import Category, Difficulty
from .crud import Candidate, candidate_rows
from .errors import InsufficientContentError

logger = logging.getLogger("quiz-service")

MIN_VIABLE_SAMPLE = 5


@dataclass(frozen=True)
class SampleFilters:
    block_id: Optional[int] = None
    kanda: Optional[str] = None
    sarga: Optional[int] = None
    difficulty: Optional[Difficulty] = None  # None = mixed
    category: Optional[Category] = None      # None = mixed

    @property
    def category_mixed(self) -> bool:
        return self.category is None

    @property
    def difficulty_mixed(self) -> bool:
        return self.difficulty is None


def partition_quota(requested: int, filters: SampleFilters) -> int:
    category_partitions = len(Category) if filters.category_mixed else 1
    difficulty_partitions = len(Difficulty) if filters.difficulty_mixed else 1
    return max(1, math.ceil(requested / category_partitions / difficulty_partitions))


def _partition_key(row: Candidate, filters: SampleFilters) -> tuple:
    key = []
    if filters.category_mixed:
        key.append(row.category)
    if filters.difficulty_mixed:
        key.append(row.difficulty)
    return tuple(key)


def _cap(partitions: dict[tuple, list[Candidate]], quota: int) -> list[tuple[int, Candidate]]:
    capped = []
    for rows in partitions.values():
        capped.extend(enumerate(rows[:quota]))
    return capped


def _deal(capped: list[tuple[int, Candidate]], target: int, filters: SampleFilters, rng: random.Random) -> list[Candidate]:
    groups: dict[str, list[tuple[int, float, Candidate]]] = defaultdict(list)
    for rank, row in capped:
        if filters.category_mixed:
            group = row.category
        elif filters.difficulty_mixed:
            group = row.difficulty
        else:
            group = ""
        groups[group].append((rank, rng.random(), row))

    queues = []
    for group in sorted(groups):
        queues.append([row for _, _, row in sorted(groups[group], key=lambda t: (t[0], t[1]))])
    rng.shuffle(queues)

    picked: list[Candidate] = []
    while len(picked) < target:
        for queue in queues:
            if queue and len(picked) < target:
                picked.append(queue.pop(0))
        queues = [q for q in queues if q]

    rng.shuffle(picked)
    return picked


def stratified_draw(
    pool: list[Candidate],
    requested: int,
    filters: SampleFilters,
    rng: Optional[random.Random] = None,
) -> list[Candidate]:
    """
    Pure two-phase selection over an already filtered pool.
    Returns min(requested, len(pool)) distinct rows.
    """
    rng = rng or random.Random()
    target = min(requested, len(pool))
    if target <= 0:
        return []

    partitions: dict[tuple, list[Candidate]] = defaultdict(list)
    for row in pool:
        partitions[_partition_key(row, filters)].append(row)
    for rows in partitions.values():
        rng.shuffle(rows)

    quota = partition_quota(requested, filters)
    capped = _cap(partitions, quota)
    # thin partitions: widen the quota until the capped pool can fill the package
    while len(capped) < target:
        quota += 1
        capped = _cap(partitions, quota)

    return _deal(capped, target, filters, rng)


def sample_question_ids(
    db: Session,
    epic_id: str,
    requested_count: int,
    filters: SampleFilters,
    *,
    min_viable: int = MIN_VIABLE_SAMPLE,
    rng: Optional[random.Random] = None,
) -> list[str]:
    if requested_count < 1:
        raise ValueError("requested_count must be at least 1")

    pool = candidate_rows(
        db,
        epic_id,
        block_id=filters.block_id,
        kanda=filters.kanda,
        sarga=filters.sarga,
        difficulty=filters.difficulty,
        category=filters.category,
    )

    required = min(requested_count, min_viable)
    if len(pool) < required:
        logger.error(
            "Insufficient content for epic %s: pool=%s required=%s filters=%s",
            epic_id, len(pool), required, filters,
        )
        raise InsufficientContentError(epic_id, len(pool), required)

    picked = stratified_draw(pool, requested_count, filters, rng)
    return [row.id for row in picked]
