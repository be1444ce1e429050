"""CLI interface with subcommand routing."""

import argparse
import logging
import os
import sys

from audiobook_annotator.artifacts import (
    get_project_status,
    init_output_dir,
    list_projects,
    load_artifact,
    slug_from_path,
    write_artifact,
    write_batch,
)
from audiobook_annotator.characters import CharacterRegistry
from audiobook_annotator.constants import (
    DEFAULT_BATCH_SIZE,
    DEFAULT_LANGUAGE,
    OUTPUT_DIR,
    PAGE_SEPARATOR,
    VERSION,
)
from audiobook_annotator.lexicon import LexiconService
from audiobook_annotator.models import BookCategory
from audiobook_annotator.normalizer import normalize_text, repair_text
from audiobook_annotator.pipeline import BookSession, PipelineConfig
from audiobook_annotator.voices import load_cast


def _read_text(file_path: str) -> str:
    """Read a UTF-8 text file, exiting with an error if missing or empty."""
    if not os.path.exists(file_path):
        print(f"Error: File not found: {file_path}", file=sys.stderr)
        raise SystemExit(1)
    with open(file_path, encoding="utf-8") as f:
        text = f.read()
    if not text.strip():
        print(f"Error: File is empty: {file_path}", file=sys.stderr)
        raise SystemExit(1)
    return text


def _get_project_dir(slug: str) -> str:
    """Get project directory path, verify it exists."""
    project_dir = os.path.join(OUTPUT_DIR, slug)
    if not os.path.isdir(project_dir):
        print(f"Error: Project '{slug}' not found.", file=sys.stderr)
        print("Run 'audiobook-annotator new <file>' to create a project.", file=sys.stderr)
        raise SystemExit(1)
    if not os.path.exists(os.path.join(project_dir, "script.json")):
        print(f"Error: Project '{slug}' is incomplete (no script.json).", file=sys.stderr)
        raise SystemExit(1)
    return project_dir


def _config_from_args(args) -> PipelineConfig:
    if args.speed <= 0:
        print(f"Error: Invalid speed: {args.speed}", file=sys.stderr)
        raise SystemExit(1)
    if args.batch_size < 1:
        print(f"Error: Invalid batch size: {args.batch_size}", file=sys.stderr)
        raise SystemExit(1)
    return PipelineConfig(
        language=args.language,
        category=BookCategory(args.category),
        master_speed=args.speed,
        batch_size=args.batch_size,
        strip_noise=not args.no_strip_noise,
    )


def cmd_new(args):
    """Annotate a book text file into a new project."""
    file_path = args.file
    text = _read_text(file_path)
    config = _config_from_args(args)

    slug = slug_from_path(file_path)
    project_dir = os.path.join(OUTPUT_DIR, slug)
    if os.path.exists(os.path.join(project_dir, "script.json")):
        print(f"Error: Project '{slug}' already exists.", file=sys.stderr)
        print(f"Use 'audiobook-annotator status {slug}' to review it.", file=sys.stderr)
        raise SystemExit(1)

    project_dir = init_output_dir(file_path, output_base=OUTPUT_DIR)

    registry = CharacterRegistry()
    cast = load_cast(file_path)
    if cast:
        registry.seed(cast)

    session = BookSession(config, LexiconService(), registry)
    pages = text.split(PAGE_SEPARATOR)
    result = session.process_book(
        pages,
        book_id=slug,
        on_batch=lambda index, records: write_batch(project_dir, index, records),
    )

    write_artifact(project_dir, "script.json", {
        "metadata": {"book_id": slug, "version": VERSION},
        "source": os.path.abspath(file_path),
        "config": config.to_dict(),
        "pages": result.pages_processed,
        "cancelled": result.cancelled,
        "noise_lines": result.noise_lines,
        "segments": result.records,
    })
    write_artifact(project_dir, "cast.json", {"characters": result.characters})

    kinds = [r["kind"] for r in result.records]
    print(f"Created project: {slug}")
    print(
        f"Processed {result.pages_processed} pages into {len(kinds)} segments "
        f"({kinds.count('narration')} narration, {kinds.count('dialogue')} dialogue, "
        f"{kinds.count('image')} image)"
    )
    print(f"Detected {len(result.characters)} characters, cast written to {OUTPUT_DIR}/{slug}/cast.json")


def cmd_normalize(args):
    """Print the normalized text of a file."""
    text = _read_text(args.file)
    lexicon = LexiconService().get(args.language)
    pages = [repair_text(normalize_text(page, lexicon)) for page in text.split(PAGE_SEPARATOR)]
    print("\n\n".join(p for p in pages if p))


def cmd_status(args):
    """Show project status."""
    slug = args.slug
    project_dir = _get_project_dir(slug)

    script = load_artifact(project_dir, "script.json") or {}
    cast = load_artifact(project_dir, "cast.json") or {}
    status = get_project_status(project_dir)

    print(f"Project: {slug}")
    print(f"Source:  {script.get('source', 'unknown')}")
    config = script.get("config", {})
    if config:
        print(
            f"Config:  language={config.get('language')} category={config.get('category')} "
            f"speed={config.get('master_speed')}"
        )

    segments = script.get("segments", [])
    narration = sum(1 for s in segments if s["kind"] == "narration")
    dialogue = sum(1 for s in segments if s["kind"] == "dialogue")
    print(f"Segments: {len(segments)} ({narration} narration, {dialogue} dialogue)")

    characters = cast.get("characters", [])
    if characters:
        print("Cast:")
        for character in characters:
            aliases = ", ".join(a for a in character.get("aliases", []) if a != character["name"])
            suffix = f" (aka {aliases})" if aliases else ""
            print(f"  {character['name']:<20} {character.get('gender', 'unknown'):<8}{suffix}")

    print("Steps:")
    for step in ("segments", "cast", "batches"):
        info = status.get(step, {"state": "pending"})
        marker = "[done]" if info["state"] == "done" else "[----]"
        details = ""
        if step == "segments" and info["state"] == "done":
            details = f" ({info['pages']} pages, {info['segments']} segments)"
            if info.get("cancelled"):
                details += " cancelled"
        elif step == "cast" and info["state"] == "done":
            details = f" ({info['characters']} characters)"
        elif step == "batches" and info["state"] == "done":
            details = f" ({info['files']} files)"
        print(f"  {marker} {step:<12}{details}")


def cmd_list(args):
    """List all projects."""
    projects = list_projects(output_base=OUTPUT_DIR)
    if not projects:
        print("No projects found.")
        return
    print("Projects:")
    for name in projects:
        status = get_project_status(os.path.join(OUTPUT_DIR, name))
        segments = status.get("segments", {}).get("segments", 0)
        print(f"  {name} ({segments} segments)")


def main():
    """CLI entry point."""
    parser = argparse.ArgumentParser(
        prog="audiobook-annotator",
        description="Audiobook Annotator: turn book page text into annotated segments for expressive TTS",
    )
    parser.add_argument("--version", action="version", version=f"%(prog)s {VERSION}")
    parser.add_argument("-v", "--verbose", action="store_true", help="Log progress to stderr")

    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    # new
    new_parser = subparsers.add_parser("new", help="Annotate a text file into a new project")
    new_parser.add_argument("file", help="Path to the book text file (pages separated by form feeds)")
    new_parser.add_argument("--language", default=DEFAULT_LANGUAGE, help="Language code (default: es)")
    new_parser.add_argument(
        "--category",
        default=BookCategory.FICTION.value,
        choices=[c.value for c in BookCategory],
        help="Book category",
    )
    new_parser.add_argument("--speed", type=float, default=1.0, help="Master narration speed")
    new_parser.add_argument("--batch-size", type=int, default=DEFAULT_BATCH_SIZE, help="Pages per batch file")
    new_parser.add_argument("--no-strip-noise", action="store_true", help="Keep running headers/footers")
    new_parser.set_defaults(func=cmd_new)

    # normalize
    normalize_parser = subparsers.add_parser("normalize", help="Print normalized text")
    normalize_parser.add_argument("file", help="Path to the text file")
    normalize_parser.add_argument("--language", default=DEFAULT_LANGUAGE, help="Language code (default: es)")
    normalize_parser.set_defaults(func=cmd_normalize)

    # status
    status_parser = subparsers.add_parser("status", help="Show project status")
    status_parser.add_argument("slug", help="Project slug")
    status_parser.set_defaults(func=cmd_status)

    # list
    list_parser = subparsers.add_parser("list", help="List all projects")
    list_parser.set_defaults(func=cmd_list)

    args = parser.parse_args()

    logging.basicConfig(
        level=logging.INFO if args.verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )

    if not args.command:
        parser.print_help()
        return

    args.func(args)
