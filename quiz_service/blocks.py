"""
Block selection: decides which narrative learning block, if any, constrains a quiz.

Blocks of one (epic, difficulty) form a linear path ordered by sequence_order.
Without an explicit choice the learner gets the first available block on that
path. The choice is deterministic and reads only.
"""
from typing import Optional

from sqlalchemy.orm import Session
from .categories import Difficulty
from .crud import block_question_counts, first_available_block, list_available_blocks
from .models import QuizBlock
from .schemas import BlockInfoOut, QuizBlockOut


def resolve_block(
    db: Session,
    epic_id: str,
    block_id: Optional[int] = None,
    difficulty: Optional[Difficulty] = None,
) -> Optional[int]:
    """
    Returns the id of the block constraining the sample, or None.

    An explicit block_id wins and is returned untouched (the assembler checks
    it exists). Otherwise a pinned difficulty picks the first available block
    of that difficulty. A mixed difficulty (None) means no block constraint.
    """
    if block_id is not None:
        return block_id
    if difficulty is None:
        return None
    block = first_available_block(db, epic_id, difficulty)
    return block.id if block else None


def recommend_block(db: Session, epic_id: str, difficulty: Difficulty) -> Optional[QuizBlock]:
    return first_available_block(db, epic_id, difficulty)


def block_summary(block: QuizBlock) -> BlockInfoOut:
    return BlockInfoOut(
        id=block.id,
        name=block.block_name,
        difficulty=block.difficulty_level,
        sarga_range=f"{block.start_sarga}-{block.end_sarga}",
        learning_objectives=block.learning_objectives,
    )


def describe_block(block: QuizBlock, counts: Optional[dict[str, int]] = None) -> QuizBlockOut:
    counts = counts or {}
    return QuizBlockOut(
        id=block.id,
        epic_id=block.epic_id,
        block_name=block.block_name,
        difficulty_level=block.difficulty_level,
        phase=block.phase,
        kanda=block.kanda,
        start_sarga=block.start_sarga,
        end_sarga=block.end_sarga,
        sequence_order=block.sequence_order,
        narrative_summary=block.narrative_summary,
        learning_objectives=block.learning_objectives,
        total_questions=sum(counts.values()),
        character_questions=counts.get("characters", 0),
        event_questions=counts.get("events", 0),
        theme_questions=counts.get("themes", 0),
        culture_questions=counts.get("culture", 0),
    )


def available_blocks(db: Session, epic_id: str, difficulty: Optional[Difficulty] = None) -> list[QuizBlockOut]:
    blocks = list_available_blocks(db, epic_id, difficulty)
    counts = block_question_counts(db, [b.id for b in blocks])
    return [describe_block(b, counts.get(b.id)) for b in blocks]
