"""Output directory management and JSON project artifacts."""

import json
import os
import re

from audiobook_annotator.constants import OUTPUT_DIR

PAGES_DIR = "pages"


def slug_from_path(book_path: str) -> str:
    """Convert book filename to output directory slug.

    "El Brujo.txt" → "el_brujo"
    "/path/to/The Open Window.txt" → "the_open_window"
    """
    basename = os.path.splitext(os.path.basename(book_path))[0]
    slug = re.sub(r"[^a-zA-Z0-9]+", "_", basename).strip("_").lower()
    return slug or "book"


def init_output_dir(book_path: str, output_base: str = OUTPUT_DIR) -> str:
    """Create output/<slug>/pages/ and return the project directory."""
    project_dir = os.path.join(output_base, slug_from_path(book_path))
    os.makedirs(os.path.join(project_dir, PAGES_DIR), exist_ok=True)
    return project_dir


def write_artifact(project_dir: str, filename: str, data) -> str:
    """Write JSON artifact to project_dir/filename.

    Returns path to the written file.
    """
    path = os.path.join(project_dir, filename)
    os.makedirs(os.path.dirname(path), exist_ok=True)
    with open(path, "w", encoding="utf-8") as f:
        json.dump(data, f, indent=2, ensure_ascii=False)
    return path


def load_artifact(project_dir: str, filename: str):
    """Read JSON artifact. Returns None if file doesn't exist."""
    path = os.path.join(project_dir, filename)
    if not os.path.exists(path):
        return None
    with open(path, encoding="utf-8") as f:
        return json.load(f)


def batch_filename(batch_index: int) -> str:
    return os.path.join(PAGES_DIR, f"batch_{batch_index:03d}.json")


def write_batch(project_dir: str, batch_index: int, records: list[dict]) -> str:
    """Persist one batch of segment records."""
    return write_artifact(project_dir, batch_filename(batch_index), {
        "batch": batch_index,
        "records": records,
    })


def list_batches(project_dir: str) -> list[str]:
    pages_dir = os.path.join(project_dir, PAGES_DIR)
    if not os.path.isdir(pages_dir):
        return []
    return sorted(f for f in os.listdir(pages_dir) if re.fullmatch(r"batch_\d+\.json", f))


def load_records(project_dir: str) -> list[dict]:
    """All persisted segment records, in batch order."""
    records = []
    for name in list_batches(project_dir):
        data = load_artifact(project_dir, os.path.join(PAGES_DIR, name)) or {}
        records.extend(data.get("records", []))
    return records


def get_project_status(project_dir: str) -> dict:
    """Return dict describing current state of each pipeline step."""
    status = {}

    script = load_artifact(project_dir, "script.json")
    if script is not None:
        status["segments"] = {
            "state": "done",
            "pages": script.get("pages", 0),
            "segments": len(script.get("segments", [])),
            "cancelled": script.get("cancelled", False),
        }
    else:
        status["segments"] = {"state": "pending"}

    cast = load_artifact(project_dir, "cast.json")
    if cast is not None:
        status["cast"] = {"state": "done", "characters": len(cast.get("characters", []))}
    else:
        status["cast"] = {"state": "pending"}

    batches = list_batches(project_dir)
    status["batches"] = {"state": "done" if batches else "pending", "files": len(batches)}
    return status


def list_projects(output_base: str = OUTPUT_DIR) -> list[str]:
    """List all project slugs under the output directory.

    Returns sorted list of directory names that contain a script.json.
    """
    if not os.path.exists(output_base):
        return []
    projects = []
    for name in os.listdir(output_base):
        project_dir = os.path.join(output_base, name)
        if os.path.isdir(project_dir) and os.path.exists(os.path.join(project_dir, "script.json")):
            projects.append(name)
    return sorted(projects)
