"""Creation page state: the sketch being edited and its version history."""

from __future__ import annotations

import logging

import httpx

from client.generation import (
    DEFAULT_ENDPOINT,
    ErrorInfo,
    GenerationController,
    GenerationOutcome,
)
from client.history import VersionHistory
from client.projects import DEFAULT_TITLE, ProjectStore, SavedProject
from schemas.generation import ProviderName
from services.generation.prompts import STARTER_CODE, is_modification_request


logger = logging.getLogger(__name__)


class CreationSession:
    """Ties a ``GenerationController`` to a ``VersionHistory``.

    Streamed chunks only ever land in ``streaming_code``. ``code`` and the
    history change when a generation completes with non-empty text, so a
    failed or partial generation leaves the accepted code untouched.

    When a ``ProjectStore`` is given, every accepted generation is saved to
    the current project, and a fresh (non-modification) request starts a new
    one.
    """

    def __init__(
        self,
        http_client: httpx.AsyncClient,
        *,
        endpoint: str = DEFAULT_ENDPOINT,
        provider: ProviderName | str | None = None,
        projects: ProjectStore | None = None,
    ) -> None:
        self.controller = GenerationController(
            http_client,
            endpoint=endpoint,
            on_chunk=self._on_chunk,
            on_error=self._on_error,
        )
        self.provider = provider
        self.projects = projects
        self.history = VersionHistory(STARTER_CODE)
        self.code = STARTER_CODE
        self.title = DEFAULT_TITLE
        self.streaming_code = ""
        self.error: str | None = None
        self.error_info: ErrorInfo | None = None
        self.last_prompt: str | None = None
        self.project_id: str | None = None

    @property
    def is_generating(self) -> bool:
        return self.controller.is_generating

    @property
    def can_undo(self) -> bool:
        return self.history.can_undo

    @property
    def can_redo(self) -> bool:
        return self.history.can_redo

    def _on_chunk(self, chunk: str) -> None:
        self.streaming_code += chunk

    def _on_error(self, message: str, info: ErrorInfo) -> None:
        self.error = message
        self.error_info = info

    async def submit(
        self, prompt: str, reference_image: str | None = None
    ) -> GenerationOutcome:
        """Generate from ``prompt``, modifying the current code when there is any."""
        self.streaming_code = ""
        self.error = None
        self.error_info = None
        self.last_prompt = prompt

        modifying = is_modification_request(self.code)
        if not modifying:
            self.project_id = None

        outcome = await self.controller.generate(
            prompt,
            current_code=self.code if modifying else None,
            reference_image=reference_image,
            provider=self.provider,
        )
        self.streaming_code = ""

        if outcome.completed and outcome.full_text:
            self._accept(outcome.full_text)
        return outcome

    def _accept(self, code: str) -> None:
        self.code = code
        self.history.push(code)
        if self.projects is None or not self.last_prompt:
            return
        saved = self.projects.save(self.last_prompt, code, self.project_id)
        self.project_id = saved.id
        self.title = saved.title
        logger.debug("Saved project %s", saved.id)

    def undo(self) -> str | None:
        code = self.history.undo()
        if code is not None:
            self.code = code
        return code

    def redo(self) -> str | None:
        code = self.history.redo()
        if code is not None:
            self.code = code
        return code

    def load_project(self, project: SavedProject) -> None:
        """Continue editing a saved project; its code becomes the only version."""
        self.code = project.code
        self.title = project.title
        self.project_id = project.id
        self.last_prompt = project.prompt
        self.history.reset(project.code)
        self.error = None
        self.error_info = None
        self.streaming_code = ""

    def reset(self) -> None:
        self.code = STARTER_CODE
        self.title = DEFAULT_TITLE
        self.history.reset(STARTER_CODE)
        self.streaming_code = ""
        self.error = None
        self.error_info = None
        self.last_prompt = None
        self.project_id = None
