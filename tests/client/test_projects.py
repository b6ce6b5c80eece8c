"""Local project storage."""

import json
import re

from client.projects import (
    DEFAULT_TITLE,
    MAX_PROJECTS,
    ProjectStore,
    export_filename,
    export_html,
    generate_project_id,
    title_from_prompt,
)


def test_generate_project_id_format():
    assert re.fullmatch(r"project_\d+_[0-9a-z]{7}", generate_project_id())


def test_title_from_prompt():
    assert title_from_prompt("  Make a bouncing ball!!! ") == "Make a bouncing ball"
    assert title_from_prompt("a" * 40) == "a" * 30
    assert title_from_prompt("?!...") == DEFAULT_TITLE
    assert title_from_prompt("") == DEFAULT_TITLE


def test_save_creates_project(tmp_path):
    store = ProjectStore(tmp_path / "projects.json")

    project = store.save("a bouncing ball!", "let x = 1;")

    assert project.title == "a bouncing ball"
    assert project.created_at == project.updated_at
    assert store.get(project.id) == project
    assert store.list() == [project]


def test_file_uses_camel_case_timestamps(tmp_path):
    path = tmp_path / "projects.json"
    ProjectStore(path).save("stars", "let s = [];")

    stored = json.loads(path.read_text())
    assert {"createdAt", "updatedAt"} <= set(stored[0])


def test_save_with_existing_id_updates_in_place(tmp_path):
    store = ProjectStore(tmp_path / "projects.json")
    original = store.save("stars", "let s = [];")

    updated = store.save("more stars", "let s = [1, 2];", existing_id=original.id)

    assert updated.id == original.id
    assert updated.title == original.title
    assert updated.code == "let s = [1, 2];"
    assert updated.prompt == "more stars"
    assert updated.updated_at >= original.updated_at
    assert len(store.list()) == 1


def test_save_with_unknown_id_creates_new(tmp_path):
    store = ProjectStore(tmp_path / "projects.json")

    project = store.save("stars", "code", existing_id="project_0_missing")

    assert project.id != "project_0_missing"
    assert len(store.list()) == 1


def test_list_orders_by_most_recent_update(tmp_path):
    store = ProjectStore(tmp_path / "projects.json")
    first = store.save("first", "1")
    second = store.save("second", "2")
    # Touch the older project so it becomes the most recent
    store.rename(first.id, "renamed")

    listed = store.list()
    if listed[0].updated_at == listed[1].updated_at:
        # Same millisecond: insertion order (newest first) is kept
        assert {p.id for p in listed} == {first.id, second.id}
    else:
        assert listed[0].id == first.id


def test_store_is_capped(tmp_path):
    store = ProjectStore(tmp_path / "projects.json")
    for index in range(MAX_PROJECTS + 5):
        store.save(f"sketch {index}", str(index))

    projects = store.list()
    assert len(projects) == MAX_PROJECTS
    assert "sketch 54" in {p.prompt for p in projects}
    assert "sketch 0" not in {p.prompt for p in projects}


def test_rename_and_delete(tmp_path):
    store = ProjectStore(tmp_path / "projects.json")
    project = store.save("stars", "code")

    assert store.rename(project.id, "Night Sky") is True
    assert store.get(project.id).title == "Night Sky"
    assert store.rename("nope", "x") is False

    assert store.delete(project.id) is True
    assert store.delete(project.id) is False
    assert store.get(project.id) is None


def test_clear(tmp_path):
    path = tmp_path / "projects.json"
    store = ProjectStore(path)
    store.save("stars", "code")

    store.clear()

    assert not path.exists()
    assert store.list() == []
    store.clear()  # clearing twice is fine


def test_unreadable_file_yields_empty_list(tmp_path, caplog):
    path = tmp_path / "projects.json"
    path.write_text("{definitely not a list")

    assert ProjectStore(path).list() == []
    assert "Error loading projects" in caplog.text


def test_export_html_embeds_code(tmp_path):
    store = ProjectStore(tmp_path / "projects.json")
    project = store.save("Cats & <Dogs>", "function setup() { createCanvas(400, 400); }")

    page = export_html(project)

    assert page.startswith("<!DOCTYPE html>")
    assert "p5.min.js" in page
    assert "window.__canvasWidth = 400;" in page
    assert project.code in page
    assert f"<title>{project.title} - Made with VIBES</title>" in page
    assert export_filename(project) == "Cats__Dogs.html"
