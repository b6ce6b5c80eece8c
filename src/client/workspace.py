"""UI workspace preferences and transient view state."""

from __future__ import annotations

import logging
from enum import StrEnum
from pathlib import Path

from pydantic import BaseModel, ConfigDict, ValidationError


logger = logging.getLogger(__name__)


class ThemeName(StrEnum):
    SPACE = "space"
    OCEAN = "ocean"
    FOREST = "forest"
    CANDY = "candy"
    SUNSET = "sunset"


class InputMode(StrEnum):
    VOICE = "voice"
    TEXT = "text"
    BLOCKS = "blocks"


class PersistedWorkspace(BaseModel):
    """The subset of workspace state that survives a restart."""

    theme: ThemeName = ThemeName.SPACE
    input_mode: InputMode = InputMode.VOICE
    show_code: bool = False


class WorkspaceState(BaseModel):
    """Application state passed explicitly to whatever renders the workspace."""

    theme: ThemeName = ThemeName.SPACE
    input_mode: InputMode = InputMode.VOICE
    show_code: bool = False
    is_playing: bool = True
    current_prompt: str = ""
    sidebar_open: bool = True

    model_config = ConfigDict(validate_assignment=True)

    def set_theme(self, theme: ThemeName | str) -> None:
        self.theme = ThemeName(theme)

    def set_input_mode(self, mode: InputMode | str) -> None:
        self.input_mode = InputMode(mode)

    def toggle_show_code(self) -> bool:
        self.show_code = not self.show_code
        return self.show_code

    def toggle_playing(self) -> bool:
        self.is_playing = not self.is_playing
        return self.is_playing

    def toggle_sidebar(self) -> bool:
        self.sidebar_open = not self.sidebar_open
        return self.sidebar_open

    def set_current_prompt(self, prompt: str) -> None:
        self.current_prompt = prompt

    def persisted(self) -> PersistedWorkspace:
        return PersistedWorkspace(
            theme=self.theme, input_mode=self.input_mode, show_code=self.show_code
        )

    def save(self, path: str | Path) -> None:
        target = Path(path)
        target.parent.mkdir(parents=True, exist_ok=True)
        target.write_text(self.persisted().model_dump_json(), encoding="utf-8")

    @classmethod
    def load(cls, path: str | Path) -> WorkspaceState:
        """Restore persisted preferences; anything else starts at its default.

        A missing or corrupt file yields a default workspace.
        """
        target = Path(path)
        if not target.exists():
            return cls()
        try:
            saved = PersistedWorkspace.model_validate_json(
                target.read_text(encoding="utf-8")
            )
        except (OSError, ValidationError) as exc:
            logger.warning("Ignoring unreadable workspace file %s: %s", target, exc)
            return cls()
        return cls(**saved.model_dump())
