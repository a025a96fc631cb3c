"""Loads the demo catalog: four published courses and their lessons.

    python -m edumynt.seed            # create tables if needed and insert
    python -m edumynt.seed --reset    # drop the demo courses first

Courses that already exist (by id) are left untouched.
"""
import argparse
import logging

import structlog
from sqlalchemy import select
from sqlalchemy.orm import Session

from .config import settings
from .infrastructure.db import Base, SessionLocal, engine
from .infrastructure.models import Course, Enrollment, Lesson, LessonProgress

logger = structlog.get_logger(__name__)

ENGLISH_GRAMMAR = "550e8400-e29b-41d4-a716-446655440001"
EDUCATIONAL_PSYCHOLOGY = "550e8400-e29b-41d4-a716-446655440002"
ENGLISH_LITERATURE = "550e8400-e29b-41d4-a716-446655440003"
QUANTITATIVE_APTITUDE = "550e8400-e29b-41d4-a716-446655440004"

COURSES = [
    dict(
        id=ENGLISH_GRAMMAR,
        title="English Grammar Mastery",
        description="A complete grammar course for government exam aspirants, from parts of speech "
                    "to modifiers, with worked examples and practice questions.",
        subject="English", is_published=True, is_free=True, price=0,
    ),
    dict(
        id=EDUCATIONAL_PSYCHOLOGY,
        title="Educational Psychology",
        description="Core educational psychology for teaching exams such as CTET and TET: "
                    "development, learning theories and classroom practice.",
        subject="Psychology", is_published=True, is_free=True, price=0,
    ),
    dict(
        id=ENGLISH_LITERATURE,
        title="Advanced English Literature",
        description="Major authors, literary movements and critical reading techniques "
                    "for competitive exams.",
        subject="English", is_published=True, is_free=False, price=299,
    ),
    dict(
        id=QUANTITATIVE_APTITUDE,
        title="Quantitative Aptitude Basics",
        description="Arithmetic, algebra and everyday mathematics as tested in government exams.",
        subject="Mathematics", is_published=True, is_free=True, price=0,
    ),
]

# (course id, title, preview, minutes, content)
LESSONS = [
    (ENGLISH_GRAMMAR, "Introduction to Parts of Speech", True, 25,
     "# Parts of Speech\n\nEvery English word belongs to one of eight classes: noun, pronoun, verb, "
     "adjective, adverb, preposition, conjunction and interjection.\n\n"
     "Knowing the class of a word tells you how it can be used in a sentence."),
    (ENGLISH_GRAMMAR, "Nouns: Types and Usage", True, 30,
     "# Nouns\n\nA noun names a person, place, thing or idea.\n\n"
     "- Common and proper nouns (city / Delhi)\n- Concrete and abstract nouns (stone / freedom)\n"
     "- Collective nouns (team, flock)\n- Countable and uncountable nouns (book / information)"),
    (ENGLISH_GRAMMAR, "Pronouns and Their Types", False, 35,
     "# Pronouns\n\nPronouns stand in for nouns: personal (he, them), possessive (mine), "
     "reflexive (myself), demonstrative (this), interrogative (who), relative (which) "
     "and indefinite (someone)."),
    (ENGLISH_GRAMMAR, "Verbs: Action and Linking Verbs", False, 40,
     "# Verbs\n\nAction verbs describe what the subject does; linking verbs (be, seem, become) "
     "connect the subject to a description. Helping verbs combine with main verbs to form tenses."),
    (ENGLISH_GRAMMAR, "Adjectives and Adverbs", False, 35,
     "# Adjectives and Adverbs\n\nAdjectives modify nouns; adverbs modify verbs, adjectives "
     "and other adverbs. Watch the comparative and superlative forms (good, better, best)."),
    (EDUCATIONAL_PSYCHOLOGY, "Introduction to Educational Psychology", True, 30,
     "# Educational Psychology\n\nThe study of how people learn and how teaching can support "
     "that learning: development, motivation, assessment and classroom management."),
    (EDUCATIONAL_PSYCHOLOGY, "Piaget's Theory of Cognitive Development", True, 45,
     "# Piaget\n\nFour stages: sensorimotor, preoperational, concrete operational and formal "
     "operational. Learners build schemas through assimilation and accommodation."),
    (EDUCATIONAL_PSYCHOLOGY, "Learning Theories: Behaviorism", False, 40,
     "# Behaviorism\n\nLearning as a change in observable behaviour: classical conditioning "
     "(Pavlov), operant conditioning (Skinner) and the role of reinforcement."),
    (ENGLISH_LITERATURE, "Introduction to English Literature", True, 35,
     "# English Literature\n\nAn overview of the periods from Old English to the modern age "
     "and how to read a text in its historical context."),
    (ENGLISH_LITERATURE, "Shakespeare: Life and Works", False, 50,
     "# Shakespeare\n\nThe comedies, histories, tragedies and sonnets, with notes on the "
     "plays most often asked about in exams."),
    (QUANTITATIVE_APTITUDE, "Number Systems and Basic Operations", True, 40,
     "# Number Systems\n\nNatural numbers, integers, rationals and irrationals; divisibility "
     "rules, HCF and LCM."),
    (QUANTITATIVE_APTITUDE, "Percentages and Applications", True, 45,
     "# Percentages\n\nConverting between fractions and percentages, percentage change, "
     "and applications to profit, loss and discount."),
]


def seed(db: Session) -> int:
    """Inserts the demo courses that are missing; returns how many were added."""
    added = 0
    for data in COURSES:
        if db.get(Course, data["id"]) is not None:
            continue
        db.add(Course(**data))
        order = 0
        for course_id, title, preview, minutes, content in LESSONS:
            if course_id != data["id"]:
                continue
            order += 1
            db.add(Lesson(course_id=course_id, title=title, content=content, order_index=order,
                          is_preview=preview, estimated_duration=minutes))
        added += 1
    db.commit()
    logger.info("demo_data_seeded", courses_added=added)
    return added


def reset(db: Session) -> None:
    ids = [data["id"] for data in COURSES]
    lesson_ids = select(Lesson.id).where(Lesson.course_id.in_(ids))
    db.query(LessonProgress).filter(LessonProgress.lesson_id.in_(lesson_ids)).delete(synchronize_session=False)
    db.query(Enrollment).filter(Enrollment.course_id.in_(ids)).delete(synchronize_session=False)
    db.query(Lesson).filter(Lesson.course_id.in_(ids)).delete(synchronize_session=False)
    db.query(Course).filter(Course.id.in_(ids)).delete(synchronize_session=False)
    db.commit()


def main(argv=None):
    parser = argparse.ArgumentParser(prog="python -m edumynt.seed", description="Load the Edumynt demo catalog")
    parser.add_argument("--reset", action="store_true", help="remove the demo courses before seeding")
    args = parser.parse_args(argv)

    structlog.configure(
        wrapper_class=structlog.make_filtering_bound_logger(
            getattr(logging, settings.LOG_LEVEL.upper(), logging.INFO)),
    )
    Base.metadata.create_all(bind=engine)
    db = SessionLocal()
    try:
        if args.reset:
            reset(db)
        seed(db)
    finally:
        db.close()


if __name__ == "__main__":
    main()
