"""Single-device storage for saved creations.

Projects live in one JSON file, newest first, capped at ``MAX_PROJECTS``.
"""

from __future__ import annotations

import html
import logging
import re
import secrets
import string
import time
from pathlib import Path

from pydantic import BaseModel, ConfigDict, Field, TypeAdapter, ValidationError


logger = logging.getLogger(__name__)

MAX_PROJECTS = 50
TITLE_MAX_LENGTH = 30
DEFAULT_TITLE = "My Creation"
P5_CDN_URL = "https://cdnjs.cloudflare.com/ajax/libs/p5.js/1.9.0/p5.min.js"

_BASE36 = string.digits + string.ascii_lowercase
_PUNCTUATION = re.compile(r"[^\w\s]")


class SavedProject(BaseModel):
    id: str
    title: str
    prompt: str
    code: str
    created_at: int = Field(alias="createdAt")
    updated_at: int = Field(alias="updatedAt")
    thumbnail: str | None = None

    model_config = ConfigDict(populate_by_name=True)


_projects_adapter = TypeAdapter(list[SavedProject])


def _now_ms() -> int:
    return time.time_ns() // 1_000_000


def generate_project_id() -> str:
    suffix = "".join(secrets.choice(_BASE36) for _ in range(7))
    return f"project_{_now_ms()}_{suffix}"


def title_from_prompt(prompt: str) -> str:
    cleaned = _PUNCTUATION.sub("", prompt.strip())[:TITLE_MAX_LENGTH]
    return cleaned or DEFAULT_TITLE


def export_html(project: SavedProject) -> str:
    """Standalone page that runs the sketch with p5.js from a CDN."""
    title = html.escape(project.title)
    return f"""<!DOCTYPE html>
<html>
<head>
  <meta charset="utf-8">
  <meta name="viewport" content="width=device-width, initial-scale=1.0">
  <title>{title} - Made with VIBES</title>
  <script src="{P5_CDN_URL}"></script>
  <style>
    * {{ margin: 0; padding: 0; box-sizing: border-box; }}
    body {{
      display: flex;
      justify-content: center;
      align-items: center;
      min-height: 100vh;
      background: linear-gradient(135deg, #1a1a2e 0%, #16213e 100%);
    }}
    canvas {{ border-radius: 12px; }}
    .credit {{
      position: fixed;
      bottom: 10px;
      right: 10px;
      color: rgba(255,255,255,0.5);
      font-family: sans-serif;
      font-size: 12px;
    }}
  </style>
</head>
<body>
  <script>
// Canvas dimensions
window.__canvasWidth = 400;
window.__canvasHeight = 400;

{project.code}
  </script>
  <div class="credit">Made with VIBES</div>
</body>
</html>"""


def export_filename(project: SavedProject) -> str:
    return re.sub(r"[^a-z0-9]", "_", project.title, flags=re.IGNORECASE) + ".html"


class ProjectStore:
    def __init__(self, path: str | Path) -> None:
        self.path = Path(path)

    def _read(self) -> list[SavedProject]:
        if not self.path.exists():
            return []
        try:
            return _projects_adapter.validate_json(self.path.read_bytes())
        except (OSError, ValidationError) as exc:
            logger.error("Error loading projects from %s: %s", self.path, exc)
            return []

    def _write(self, projects: list[SavedProject]) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        self.path.write_bytes(_projects_adapter.dump_json(projects, by_alias=True))

    def list(self) -> list[SavedProject]:
        """All projects, most recently updated first."""
        return sorted(self._read(), key=lambda p: p.updated_at, reverse=True)

    def get(self, project_id: str) -> SavedProject | None:
        return next((p for p in self._read() if p.id == project_id), None)

    def save(
        self, prompt: str, code: str, existing_id: str | None = None
    ) -> SavedProject:
        """Update ``existing_id`` if it is stored, otherwise create a project."""
        projects = self.list()
        now = _now_ms()

        if existing_id:
            for index, project in enumerate(projects):
                if project.id == existing_id:
                    updated = project.model_copy(
                        update={"prompt": prompt, "code": code, "updated_at": now}
                    )
                    projects[index] = updated
                    self._write(projects)
                    return updated

        created = SavedProject(
            id=generate_project_id(),
            title=title_from_prompt(prompt),
            prompt=prompt,
            code=code,
            created_at=now,
            updated_at=now,
        )
        projects.insert(0, created)
        self._write(projects[:MAX_PROJECTS])
        return created

    def rename(self, project_id: str, title: str) -> bool:
        projects = self.list()
        for index, project in enumerate(projects):
            if project.id == project_id:
                projects[index] = project.model_copy(
                    update={"title": title, "updated_at": _now_ms()}
                )
                self._write(projects)
                return True
        return False

    def delete(self, project_id: str) -> bool:
        projects = self.list()
        remaining = [p for p in projects if p.id != project_id]
        if len(remaining) == len(projects):
            return False
        self._write(remaining)
        return True

    def clear(self) -> None:
        self.path.unlink(missing_ok=True)
