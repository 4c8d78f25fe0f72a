from __future__ import annotations

from dataclasses import asdict, dataclass, field
from datetime import datetime

DIFFICULTIES = ("beginner", "intermediate", "advanced")

QUESTION_TYPES = ("multipleChoice", "flashcards", "writing", "speaking", "listening")

# Types served by the paragraph-cycling prompt strategy
OPEN_ENDED_TYPES = ("writing", "speaking", "listening")


@dataclass
class Section:
    title: str
    content: str
    level: int  # 1 for "# ", 2 for "## "


@dataclass
class DocumentMetadata:
    word_count: int
    language: str
    key_terms: list[str] = field(default_factory=list)
    title: str | None = None
    author: str | None = None
    creation_date: str | None = None
    page_count: int | None = None


@dataclass
class ParsedDocument:
    text: str
    metadata: DocumentMetadata
    sections: list[Section] | None = None

    def content(self) -> str:
        """Section bodies joined by newlines, or the full text without sections."""
        if self.sections:
            joined = "\n".join(s.content for s in self.sections)
            if joined:
                return joined
        return self.text

    def to_dict(self) -> dict:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: dict) -> ParsedDocument:
        sections = data.get("sections")
        return cls(
            text=data["text"],
            metadata=DocumentMetadata(**data["metadata"]),
            sections=[Section(**s) for s in sections] if sections is not None else None,
        )


@dataclass
class GeneratedQuestion:
    id: str
    question: str
    correct_answer: str
    difficulty: str  # beginner | intermediate | advanced
    question_type: str  # multipleChoice | flashcards | writing | speaking | listening
    language: str
    source_content_id: str
    created_at: datetime
    updated_at: datetime
    options: list[str] | None = None
    explanation: str | None = None
    tags: list[str] = field(default_factory=list)

    def to_dict(self) -> dict:
        d = asdict(self)
        d["created_at"] = self.created_at.isoformat()
        d["updated_at"] = self.updated_at.isoformat()
        return d


@dataclass
class DocumentMeta:
    id: str
    title: str
    type: str  # mime type of the upload
    size: int
    uploaded_by: str
    content_type: str  # question type the upload is meant for
    language: str
    created_at: str
    parsed_content: ParsedDocument | None = None
    difficulty: str | None = None
    tags: list[str] | None = None
