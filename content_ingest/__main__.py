"""CLI entry point for content-ingest.

Usage:
  python -m content_ingest serve [--host HOST] [--port PORT]
  python -m content_ingest parse FILE [--mime TYPE]
  python -m content_ingest generate FILE [--type TYPE] [--count N]
                                         [--difficulty LEVEL] [--seed S] [--user ID]
  python -m content_ingest stats
"""
from __future__ import annotations

import asyncio
import json
import logging
import random
import sys
from pathlib import Path


def main():
    args = sys.argv[1:]
    command = args[0] if args else "serve"

    if command == "serve":
        _serve(args[1:])
    elif command == "parse":
        _parse(args[1:])
    elif command == "generate":
        _generate(args[1:])
    elif command == "stats":
        _stats()
    else:
        print(f"Unknown command: {command}")
        print("Commands: serve, parse, generate, stats")
        sys.exit(1)


def _parse_flag(args: list[str], name: str, default: str | None) -> str | None:
    for i, a in enumerate(args):
        if a == name and i + 1 < len(args):
            return args[i + 1]
    return default


def _source_file(args: list[str]) -> Path:
    if not args or args[0].startswith("--"):
        print("No input file given.")
        sys.exit(1)
    path = Path(args[0])
    if not path.exists():
        print(f"File not found: {path}")
        sys.exit(1)
    return path


def _configure_logging(level: str) -> None:
    logging.basicConfig(level=level.upper(), format="%(name)s | %(message)s")


def _serve(args: list[str]):
    import uvicorn

    port = int(_parse_flag(args, "--port", "8766"))
    host = _parse_flag(args, "--host", "127.0.0.1")
    print(f"Starting Content Ingest on http://{host}:{port}")
    print("Press Ctrl+C to stop\n")
    uvicorn.run(
        "content_ingest.app:app",
        host=host,
        port=port,
        reload=False,
        timeout_graceful_shutdown=5,
    )


def _parse(args: list[str]):
    from content_ingest.parsers.document_parser import parse_document

    path = _source_file(args)
    mime = _parse_flag(args, "--mime", "text/plain")
    parsed = parse_document(path.read_text(), mime)
    print(json.dumps(parsed.to_dict(), indent=2, ensure_ascii=False))


def _generate(args: list[str]):
    from content_ingest.config import load_settings
    from content_ingest.db import Database
    from content_ingest.gateways.base import PersistenceError
    from content_ingest.gateways.sqlite import SQLiteGateway
    from content_ingest.models import DIFFICULTIES, QUESTION_TYPES
    from content_ingest.parsers.document_parser import parse_document
    from content_ingest.persistence import save_document
    from content_ingest.question_generator import generate_questions_from_document

    settings = load_settings()
    _configure_logging(settings.log_level)

    path = _source_file(args)
    qtype = _parse_flag(args, "--type", "multipleChoice")
    count = int(_parse_flag(args, "--count", str(settings.default_question_count)))
    difficulty = _parse_flag(args, "--difficulty", settings.default_difficulty)
    seed = _parse_flag(args, "--seed", None)
    if seed is None and settings.random_seed is not None:
        seed = str(settings.random_seed)
    user = _parse_flag(args, "--user", "cli")
    if qtype not in QUESTION_TYPES or difficulty not in DIFFICULTIES:
        print(f"Unsupported type/difficulty: {qtype}/{difficulty}")
        print(f"Types: {', '.join(QUESTION_TYPES)}; difficulties: {', '.join(DIFFICULTIES)}")
        sys.exit(1)
    mime = "text/plain" if path.suffix in (".txt", ".md", "") else "application/octet-stream"

    content = path.read_text()
    parsed = parse_document(content, mime)
    rng = random.Random(int(seed)) if seed is not None else random.Random()

    db = Database(settings.db_full_path)
    gateway = SQLiteGateway(db)

    async def run():
        meta = await save_document(
            gateway,
            title=parsed.metadata.title or path.stem,
            mime_type=mime,
            size=len(content.encode()),
            uploaded_by=user,
            content_type=qtype,
            language=parsed.metadata.language,
            parsed=parsed,
            difficulty=difficulty,
            tags=parsed.metadata.key_terms,
        )
        return await generate_questions_from_document(
            gateway, meta.id, parsed, qtype,
            count=count, difficulty=difficulty, created_by=user, rng=rng,
        )

    try:
        questions = asyncio.run(run())
    except (ValueError, PersistenceError) as e:
        print(f"Generation failed: {e}")
        sys.exit(1)
    finally:
        db.close()

    print(json.dumps([q.to_dict() for q in questions], indent=2, ensure_ascii=False))
    print(f"\n{len(questions)} of {count} requested {qtype} questions stored.", file=sys.stderr)


def _stats():
    from content_ingest.config import load_settings
    from content_ingest.db import Database

    settings = load_settings()
    db = Database(settings.db_full_path)
    stats = db.get_stats()
    db.close()

    print(f"Documents:  {stats['total_documents']}")
    print(f"Questions:  {stats['total_questions']}")
    for qtype, n in sorted(stats["questions_by_type"].items()):
        print(f"  {qtype}: {n}")
    for language, n in sorted(stats["documents_by_language"].items()):
        print(f"Documents in {language}: {n}")


if __name__ == "__main__":
    main()
