"""Derive assessment items from a parsed document using fixed heuristics."""
from __future__ import annotations

import logging
import random
import re
import uuid
from datetime import datetime, timezone
from typing import TYPE_CHECKING

from content_ingest.gateways.base import PersistenceError
from content_ingest.models import (
    DIFFICULTIES,
    QUESTION_TYPES,
    GeneratedQuestion,
    ParsedDocument,
)
from content_ingest.persistence import save_questions
from content_ingest.sampling import sample_indexes, shuffle

if TYPE_CHECKING:
    from content_ingest.gateways.base import PersistenceGateway

_log = logging.getLogger("content_ingest.qgen")

BLANK = "________"
MULTIPLE_CHOICE_PROMPT = "What word best completes this sentence: "
MULTIPLE_CHOICE_EXPLANATION = (
    'The correct word is "{answer}" because it fits the context of the sentence.'
)
OPTION_COUNT = 4

SENTENCE_MIN_LENGTH = 30
SENTENCE_MAX_LENGTH = 200

# Share of candidate sentences sampled per difficulty, in percent
SAMPLE_PERCENT = {
    "beginner": 20,
    "intermediate": 50,
    "advanced": 100,
}

FLASHCARD_TERM_WORDS = 3
FLASHCARD_PAD_MIN_LENGTH = 6
FLASHCARD_PAD_PROMPT = "Define: {term}"
FLASHCARD_PAD_ANSWER = "Definition to be written by the content author."

# question_type -> (prompt template, model answer template, excerpt length)
OPEN_ENDED_TEMPLATES = {
    "writing": (
        "Write a short paragraph about: {excerpt}...",
        "A short paragraph that develops the main idea of the excerpt.",
        50,
    ),
    "speaking": (
        "Read and explain the following passage: {excerpt}...",
        "Proper pronunciation and explanation of the passage",
        100,
    ),
    "listening": (
        "Listen to the following passage and answer: What is the main topic?",
        "The main topic is about {excerpt}",
        50,
    ),
}

_SENTENCE_SPLIT_RE = re.compile(r"[.!?]+")
_PARAGRAPH_SPLIT_RE = re.compile(r"\n\n+")
_ELIGIBLE_WORD_RE = re.compile(r"[A-Za-z]{5,}")


class InvalidQuestionType(ValueError):
    """A question type with no generation strategy reached the dispatcher."""


# ── Text helpers ──────────────────────────────────────────────────────────

def split_sentences(text: str) -> list[str]:
    return [s.strip() for s in _SENTENCE_SPLIT_RE.split(text) if s.strip()]


def split_paragraphs(text: str) -> list[str]:
    return [p for p in _PARAGRAPH_SPLIT_RE.split(text) if p.strip()]


def candidate_sentences(text: str) -> list[str]:
    """Sentences long enough to blank a word out of, short enough to read."""
    return [
        s for s in split_sentences(text)
        if SENTENCE_MIN_LENGTH <= len(s) <= SENTENCE_MAX_LENGTH
    ]


def sample_size(candidate_count: int, difficulty: str) -> int:
    """ceil(candidate_count * share), capped at candidate_count."""
    percent = SAMPLE_PERCENT[difficulty]
    return min(candidate_count, (candidate_count * percent + 99) // 100)


def _new_question(
    document_id: str,
    question_type: str,
    question: str,
    correct_answer: str,
    difficulty: str,
    language: str,
    now: datetime,
    options: list[str] | None = None,
    explanation: str | None = None,
    tags: list[str] | None = None,
) -> GeneratedQuestion:
    return GeneratedQuestion(
        id=str(uuid.uuid4()),
        question=question,
        options=options,
        correct_answer=correct_answer,
        explanation=explanation,
        difficulty=difficulty,
        question_type=question_type,
        tags=list(tags or []),
        language=language,
        source_content_id=document_id,
        created_at=now,
        updated_at=now,
    )


# ── Multiple choice ───────────────────────────────────────────────────────

def _placeholder_option(options: list[str], n: int) -> str:
    while f"option{n}" in options:
        n += 1
    return f"option{n}"


def _build_options(correct: str, words: list[str], rng: random.Random) -> list[str]:
    """The correct word plus three distractors drawn from the same sentence.

    A draw that repeats an option or is too short to be a plausible answer
    becomes an ``optionN`` placeholder, so four unique options always come out.
    """
    options = [correct]
    for j in range(OPTION_COUNT - 1):
        candidate = rng.choice(words)
        if candidate not in options and len(candidate) > 3:
            options.append(candidate)
        else:
            options.append(_placeholder_option(options, j + 1))
    return options


def generate_multiple_choice(
    content: str,
    count: int,
    difficulty: str,
    document_id: str,
    language: str,
    tags: list[str] | None = None,
    rng: random.Random | None = None,
) -> list[GeneratedQuestion]:
    """Cloze questions: blank out one word of a sampled sentence."""
    if rng is None:
        rng = random.Random()
    sentences = candidate_sentences(content)
    if not sentences or count <= 0:
        return []

    picked = sample_indexes(len(sentences), sample_size(len(sentences), difficulty), rng)
    now = datetime.now(timezone.utc)
    questions: list[GeneratedQuestion] = []

    for idx in picked:
        if len(questions) >= count:
            break
        words = sentences[idx].split()
        # First and last tokens are never blanked
        eligible = [
            i for i in range(1, len(words) - 1)
            if _ELIGIBLE_WORD_RE.fullmatch(words[i])
        ]
        if not eligible:
            _log.debug("Sentence %d has no eligible word, skipping", idx)
            continue

        target = rng.choice(eligible)
        correct = words[target]
        stem = " ".join(BLANK if i == target else w for i, w in enumerate(words))
        options = shuffle(_build_options(correct, words, rng), rng)

        questions.append(_new_question(
            document_id, "multipleChoice",
            question=MULTIPLE_CHOICE_PROMPT + stem,
            correct_answer=correct,
            difficulty=difficulty,
            language=language,
            now=now,
            options=options,
            explanation=MULTIPLE_CHOICE_EXPLANATION.format(answer=correct),
            tags=tags,
        ))

    return questions


# ── Flashcards ────────────────────────────────────────────────────────────

def generate_flashcards(
    content: str,
    count: int,
    difficulty: str,
    document_id: str,
    language: str,
    rng: random.Random | None = None,
) -> list[GeneratedQuestion]:
    """Term/definition cards from paragraphs, padded with "Define:" cards.

    A paragraph's opening words are the term and its remaining sentences the
    definition.  When paragraphs run out, long content words are drawn
    without replacement until *count* is met or the words run out.
    """
    if count <= 0:
        return []
    now = datetime.now(timezone.utc)
    questions: list[GeneratedQuestion] = []

    for paragraph in split_paragraphs(content)[:count]:
        sentences = split_sentences(paragraph)
        if len(sentences) < 2:
            _log.debug("Paragraph has %d sentence(s), skipping", len(sentences))
            continue
        term = " ".join(sentences[0].split()[:FLASHCARD_TERM_WORDS]) + "..."
        definition = ". ".join(sentences[1:])
        questions.append(_new_question(
            document_id, "flashcards",
            question=term,
            correct_answer=definition,
            difficulty=difficulty,
            language=language,
            now=now,
        ))

    missing = count - len(questions)
    if missing > 0:
        # Each word is drawn at most once, so padding can fall short of count
        pool = list(dict.fromkeys(
            w for w in content.split() if len(w) >= FLASHCARD_PAD_MIN_LENGTH
        ))
        for i in sample_indexes(len(pool), missing, rng):
            questions.append(_new_question(
                document_id, "flashcards",
                question=FLASHCARD_PAD_PROMPT.format(term=pool[i]),
                correct_answer=FLASHCARD_PAD_ANSWER,
                difficulty=difficulty,
                language=language,
                now=now,
            ))

    return questions


# ── Writing / speaking / listening ────────────────────────────────────────

def generate_open_ended(
    content: str,
    question_type: str,
    count: int,
    difficulty: str,
    document_id: str,
    language: str,
) -> list[GeneratedQuestion]:
    """Exactly *count* prompts, reusing paragraphs round-robin if needed."""
    paragraphs = split_paragraphs(content)
    if not paragraphs or count <= 0:
        return []

    prompt, answer, excerpt_length = OPEN_ENDED_TEMPLATES[question_type]
    now = datetime.now(timezone.utc)
    questions: list[GeneratedQuestion] = []
    for i in range(count):
        excerpt = paragraphs[i % len(paragraphs)][:excerpt_length]
        questions.append(_new_question(
            document_id, question_type,
            question=prompt.format(excerpt=excerpt),
            correct_answer=answer.format(excerpt=excerpt),
            difficulty=difficulty,
            language=language,
            now=now,
        ))
    return questions


# ── Dispatch ──────────────────────────────────────────────────────────────

def build_questions(
    document_id: str,
    parsed: ParsedDocument,
    question_type: str,
    count: int = 5,
    difficulty: str = "intermediate",
    rng: random.Random | None = None,
) -> list[GeneratedQuestion]:
    """Generate up to *count* questions of *question_type* in memory.

    Raises InvalidQuestionType for unknown types and ValueError for unknown
    difficulties.  Thin content yields fewer questions, never an error.
    """
    if question_type not in QUESTION_TYPES:
        raise InvalidQuestionType(f"Unknown question type: {question_type!r}")
    if difficulty not in DIFFICULTIES:
        raise ValueError(f"Unknown difficulty: {difficulty!r}")

    content = parsed.content()
    language = parsed.metadata.language or "english"

    if question_type == "multipleChoice":
        questions = generate_multiple_choice(
            content, count, difficulty, document_id, language,
            tags=parsed.metadata.key_terms, rng=rng,
        )
    elif question_type == "flashcards":
        questions = generate_flashcards(
            content, count, difficulty, document_id, language, rng=rng,
        )
    else:
        questions = generate_open_ended(
            content, question_type, count, difficulty, document_id, language,
        )

    _log.info("Generated %d/%d %s questions for %s",
              len(questions), count, question_type, document_id)
    return questions


async def generate_questions_from_document(
    gateway: PersistenceGateway,
    document_id: str,
    parsed: ParsedDocument,
    question_type: str,
    count: int = 5,
    difficulty: str = "intermediate",
    created_by: str = "",
    rng: random.Random | None = None,
) -> list[GeneratedQuestion]:
    """Generate questions and persist them in a single batch write.

    Returns the questions as stored by the gateway.  Nothing is written if
    generation fails; gateway errors propagate to the caller.
    """
    questions = build_questions(
        document_id, parsed, question_type, count, difficulty, rng,
    )
    try:
        return await save_questions(gateway, questions, created_by)
    except PersistenceError as e:
        _log.error("Saving %d questions for %s via %s failed: %s",
                   len(questions), document_id, gateway.name(), e)
        raise
