"""Tests for artifacts module (Layer 4)."""

import os

from audiobook_annotator.artifacts import (
    batch_filename,
    get_project_status,
    init_output_dir,
    list_batches,
    list_projects,
    load_artifact,
    load_records,
    slug_from_path,
    write_artifact,
    write_batch,
)


# --- Slugs and directories ---


def test_slug_from_path():
    assert slug_from_path("El Brujo.txt") == "el_brujo"
    assert slug_from_path("/path/to/The Open Window.txt") == "the_open_window"


def test_slug_fallback():
    """A name with no usable characters still gets a slug."""
    assert slug_from_path("¿¿.txt") == "book"


def test_init_output_dir(tmp_path):
    project_dir = init_output_dir("Mi Libro.txt", output_base=str(tmp_path))
    assert project_dir == os.path.join(str(tmp_path), "mi_libro")
    assert os.path.isdir(os.path.join(project_dir, "pages"))


# --- JSON artifacts ---


def test_write_and_load_artifact(tmp_path):
    """Non-ASCII text survives a round trip."""
    data = {"text": "—¿Quién anda ahí?", "n": 3}
    path = write_artifact(str(tmp_path), "script.json", data)
    assert os.path.exists(path)
    assert load_artifact(str(tmp_path), "script.json") == data
    with open(path, encoding="utf-8") as f:
        assert "¿Quién" in f.read()


def test_load_missing_artifact(tmp_path):
    assert load_artifact(str(tmp_path), "nope.json") is None


def test_batches_in_order(tmp_path):
    project_dir = str(tmp_path)
    write_batch(project_dir, 1, [{"segment_index": 2}])
    write_batch(project_dir, 0, [{"segment_index": 0}, {"segment_index": 1}])
    assert list_batches(project_dir) == ["batch_000.json", "batch_001.json"]
    assert [r["segment_index"] for r in load_records(project_dir)] == [0, 1, 2]
    assert batch_filename(7) == os.path.join("pages", "batch_007.json")


# --- Status ---


def test_status_pending(tmp_path):
    status = get_project_status(str(tmp_path))
    assert status["segments"]["state"] == "pending"
    assert status["cast"]["state"] == "pending"
    assert status["batches"]["state"] == "pending"


def test_status_done(tmp_path):
    project_dir = str(tmp_path)
    write_artifact(project_dir, "script.json", {"pages": 2, "segments": [{}, {}, {}]})
    write_artifact(project_dir, "cast.json", {"characters": [{"name": "Pedro"}]})
    write_batch(project_dir, 0, [])
    status = get_project_status(project_dir)
    assert status["segments"] == {"state": "done", "pages": 2, "segments": 3, "cancelled": False}
    assert status["cast"] == {"state": "done", "characters": 1}
    assert status["batches"] == {"state": "done", "files": 1}


def test_list_projects(tmp_path):
    write_artifact(str(tmp_path / "b_book"), "script.json", {})
    write_artifact(str(tmp_path / "a_book"), "script.json", {})
    (tmp_path / "empty").mkdir()
    assert list_projects(str(tmp_path)) == ["a_book", "b_book"]


def test_list_projects_missing_dir(tmp_path):
    assert list_projects(str(tmp_path / "nothing")) == []
