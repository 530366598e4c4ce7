# seed.py
"""
Sample content for local runs: the Ramayana (available, Bala Kanda blocks and
questions) and the Mahabharata (listed, not yet available).

    python -m seed
"""
import logging

from sqlalchemy.orm import Session

from shared.config import load_settings
from shared.database import build_engine, build_session_factory, init_db, transaction
from epic_service.crud import create_epic, get_epic
from quiz_service.crud import create_block, create_question

logger = logging.getLogger("quiz-service")

EPICS = [
    {
        "id": "ramayana",
        "title": "THE RAMAYANA",
        "description": "Ancient Indian Epic",
        "language": "sanskrit",
        "culture": "Hindu",
        "time_period": "7th century BCE - 3rd century CE",
        "is_available": True,
    },
    {
        "id": "mahabharata",
        "title": "THE MAHABHARATA",
        "description": "The Great Epic of the Bharata Dynasty",
        "language": "sanskrit",
        "culture": "Hindu",
        "time_period": "4th century BCE - 4th century CE",
        "is_available": False,
    },
]

BLOCKS = [
    {
        "block_name": "Origins & Divine Birth",
        "difficulty_level": "easy",
        "phase": "foundational",
        "kanda": "bala_kanda",
        "start_sarga": 1,
        "end_sarga": 5,
        "sequence_order": 1,
        "learning_objectives": [
            "Understanding the cosmic context",
            "Meeting main characters",
            "Grasping divine intervention concept",
        ],
        "narrative_summary": (
            "The epic begins with Narada's visit to Valmiki, the conception of Ramayana, "
            "and the divine origins of Rama and his brothers."
        ),
    },
    {
        "block_name": "Royal Education & Early Adventures",
        "difficulty_level": "easy",
        "phase": "foundational",
        "kanda": "bala_kanda",
        "start_sarga": 6,
        "end_sarga": 10,
        "sequence_order": 2,
        "learning_objectives": [
            "Prince education system",
            "Early heroic deeds",
            "Teacher-student relationships",
        ],
        "narrative_summary": (
            "The princes receive their education and training. Early adventures and the "
            "development of their heroic qualities."
        ),
    },
    {
        "block_name": "Forest Adventures & Demon Battles",
        "difficulty_level": "medium",
        "phase": "development",
        "kanda": "bala_kanda",
        "start_sarga": 16,
        "end_sarga": 25,
        "sequence_order": 4,
        "learning_objectives": [
            "Understanding dharma in action",
            "Complexity of good vs evil",
            "Strategic thinking",
        ],
        "narrative_summary": (
            "Rama and Lakshmana journey with Vishvamitra, face their first demon encounters, "
            "and learn about cosmic battles."
        ),
    },
    {
        "block_name": "The Impossible Bow & Divine Marriage",
        "difficulty_level": "hard",
        "phase": "mastery",
        "kanda": "bala_kanda",
        "start_sarga": 51,
        "end_sarga": 65,
        "sequence_order": 7,
        "learning_objectives": [
            "Symbolic meaning of divine trials",
            "Marriage as cosmic union",
            "Manifestation of destiny",
        ],
        "narrative_summary": (
            "Rama breaks Shiva's bow, wins Sita's hand, and their marriage represents the "
            "union of divine principles."
        ),
    },
]

# (sequence_order of the block of the same difficulty, or None; question fields)
QUESTIONS = [
    (1, {
        "category": "characters", "difficulty": "easy", "kanda": "bala_kanda", "sarga": 1,
        "question_text": "Which sage narrated the story of Rama to Valmiki?",
        "options": ["Vishvamitra", "Narada", "Vasishtha", "Agastya"],
        "correct_answer_id": 1,
        "basic_explanation": "Narada visited Valmiki's hermitage and told him of Rama, the ideal man.",
    }),
    (1, {
        "category": "events", "difficulty": "easy", "kanda": "bala_kanda", "sarga": 2,
        "question_text": "What moved Valmiki to compose the first shloka?",
        "options": [
            "A vision of Brahma",
            "The killing of a krauncha bird",
            "A dream of Ayodhya",
            "A command from Dasharatha",
        ],
        "correct_answer_id": 1,
        "basic_explanation": "Grief at a hunter shooting one of a pair of krauncha birds became the first verse.",
    }),
    (1, {
        "category": "themes", "difficulty": "easy", "kanda": "bala_kanda", "sarga": 1,
        "question_text": "Which quality does Narada praise first when describing Rama?",
        "options": ["Wealth", "Adherence to dharma", "Skill at dice", "Cunning"],
        "correct_answer_id": 1,
        "basic_explanation": "Rama is introduced as the one who never strays from dharma.",
    }),
    (1, {
        "category": "culture", "difficulty": "easy", "kanda": "bala_kanda", "sarga": 5,
        "question_text": "Which ritual did Dasharatha perform to obtain sons?",
        "options": ["Rajasuya", "Putrakameshti yajna", "Vajapeya", "Agnihotra"],
        "correct_answer_id": 1,
        "basic_explanation": "The putrakameshti yajna was performed for the birth of heirs.",
    }),
    (1, {
        "category": "characters", "difficulty": "easy", "kanda": "bala_kanda", "sarga": 4,
        "question_text": "Who was the king of Ayodhya when Rama was born?",
        "options": ["Janaka", "Dasharatha", "Sugriva", "Bharata"],
        "correct_answer_id": 1,
        "basic_explanation": "Dasharatha of the Ikshvaku line ruled Ayodhya.",
    }),
    (1, {
        "category": "events", "difficulty": "easy", "kanda": "bala_kanda", "sarga": 4,
        "question_text": "Who first recited the Ramayana at Rama's court?",
        "options": ["Lava and Kusha", "Bharata and Shatrughna", "Narada", "Vasishtha"],
        "correct_answer_id": 0,
        "basic_explanation": "Valmiki taught the poem to Lava and Kusha, who sang it before Rama.",
    }),
    (2, {
        "category": "characters", "difficulty": "easy", "kanda": "bala_kanda", "sarga": 7,
        "question_text": "Who was the royal preceptor of Dasharatha's household?",
        "options": ["Vasishtha", "Valmiki", "Bharadvaja", "Narada"],
        "correct_answer_id": 0,
        "basic_explanation": "Vasishtha guided the Ikshvaku kings and taught the princes.",
    }),
    (2, {
        "category": "culture", "difficulty": "easy", "kanda": "bala_kanda", "sarga": 8,
        "question_text": "Where did princes traditionally live while studying with their guru?",
        "options": ["In the palace", "In the ashrama", "In a temple", "In the army camp"],
        "correct_answer_id": 1,
        "basic_explanation": "Students lived in the guru's ashrama under the gurukula tradition.",
    }),
    (4, {
        "category": "events", "difficulty": "medium", "kanda": "bala_kanda", "sarga": 19,
        "question_text": "Why did Vishvamitra ask Dasharatha for Rama?",
        "options": [
            "To crown him early",
            "To protect his yajna from demons",
            "To arrange his marriage",
            "To teach him astronomy",
        ],
        "correct_answer_id": 1,
        "basic_explanation": "Demons kept defiling Vishvamitra's sacrifice and only Rama could stop them.",
    }),
    (4, {
        "category": "characters", "difficulty": "medium", "kanda": "bala_kanda", "sarga": 24,
        "question_text": "Which demoness did Rama slay on Vishvamitra's instruction?",
        "options": ["Surpanakha", "Tataka", "Lankini", "Simhika"],
        "correct_answer_id": 1,
        "basic_explanation": "Tataka terrorized the forest and Rama killed her at Vishvamitra's bidding.",
    }),
    (7, {
        "category": "events", "difficulty": "hard", "kanda": "bala_kanda", "sarga": 60,
        "question_text": "What happened when Rama strung Shiva's bow at Janaka's court?",
        "options": ["It turned to gold", "It broke in two", "It vanished", "It flew to the heavens"],
        "correct_answer_id": 1,
        "basic_explanation": "Rama bent the bow so far that it snapped, winning Sita's hand.",
    }),
    (7, {
        "category": "themes", "difficulty": "hard", "kanda": "bala_kanda", "sarga": 65,
        "question_text": "What does the marriage of Rama and Sita symbolize?",
        "options": [
            "A political alliance only",
            "The union of divine principles",
            "The end of the Ikshvaku line",
            "A victory over Ravana",
        ],
        "correct_answer_id": 1,
        "basic_explanation": "Rama and Sita embody Vishnu and Lakshmi, and their union is cosmic.",
    }),
    (None, {
        "category": "characters", "difficulty": "easy", "kanda": "bala_kanda", "sarga": 66,
        "question_text": "Who was Sita's father in the Ramayana?",
        "options": ["King Dasharatha", "King Janaka", "King Ravana", "King Sugriva"],
        "correct_answer_id": 1,
        "basic_explanation": (
            "King Janaka of Mithila was Sita's adoptive father. He found her while plowing "
            "a field and raised her as his daughter."
        ),
    }),
    (None, {
        "category": "culture", "difficulty": "medium", "kanda": "bala_kanda", "sarga": 67,
        "question_text": "What cultural practice does Sita's swayamvara represent?",
        "options": ["Arranged marriage", "Self-choice marriage ceremony", "Royal coronation", "Religious ritual"],
        "correct_answer_id": 1,
        "basic_explanation": (
            "Swayamvara was an ancient practice where a princess could choose her husband "
            "from assembled suitors, usually through a contest or challenge."
        ),
    }),
    (None, {
        "category": "events", "difficulty": "easy", "kanda": "ayodhya_kanda", "sarga": 18,
        "question_text": "How long was Rama's exile in the forest?",
        "options": ["10 years", "12 years", "14 years", "16 years"],
        "correct_answer_id": 2,
        "basic_explanation": (
            "Rama was exiled to the forest for 14 years due to the promise his father "
            "Dasharatha had made to Kaikeyi."
        ),
    }),
    (None, {
        "category": "themes", "difficulty": "medium", "kanda": "ayodhya_kanda", "sarga": 109,
        "question_text": "What does the Ramayana teach about dharma?",
        "options": [
            "Dharma is following rules blindly",
            "Dharma means doing what is right even when difficult",
            "Dharma only applies to kings",
            "Dharma is about personal gain",
        ],
        "correct_answer_id": 1,
        "basic_explanation": (
            "The Ramayana demonstrates that dharma (righteous duty) means choosing what is "
            "morally right, even when it involves personal sacrifice or hardship."
        ),
    }),
]


def seed_sample_content(db: Session) -> bool:
    """Loads the sample epics. Returns False if they were already there."""
    if get_epic(db, "ramayana") is not None:
        return False

    # all rows or none; a failure part way leaves an empty database to retry
    with transaction(db) as tx:
        for payload in EPICS:
            create_epic(tx, dict(payload), commit=False)

        block_ids = {}
        for payload in BLOCKS:
            block = create_block(tx, "ramayana", dict(payload), commit=False)
            block_ids[(block.difficulty_level, block.sequence_order)] = block.id

        for sequence_order, payload in QUESTIONS:
            fields = dict(payload)
            if sequence_order is not None:
                fields["block_id"] = block_ids[(fields["difficulty"], sequence_order)]
            create_question(tx, "ramayana", fields, commit=False)

    logger.info("Seeded %s epics, %s blocks, %s questions", len(EPICS), len(BLOCKS), len(QUESTIONS))
    return True


def main() -> None:
    settings = load_settings()
    logging.basicConfig(level=getattr(logging, settings.log_level, logging.INFO))

    engine = build_engine(settings.database_url, echo=settings.sql_echo)
    init_db(engine)
    SessionLocal = build_session_factory(engine)
    db = SessionLocal()
    try:
        if not seed_sample_content(db):
            logger.info("Sample content already present in %s", settings.database_url)
    finally:
        db.close()
        engine.dispose()


if __name__ == "__main__":
    main()
