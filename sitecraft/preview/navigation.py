"""Navigation bridge between the sandboxed preview surface and its host."""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import TYPE_CHECKING, Annotated, Any, List, Literal, Optional, Sequence, Union

from jinja2 import Environment, FileSystemLoader
from pydantic import BaseModel, ConfigDict, Field, TypeAdapter, ValidationError

from ..config import DEFAULT_SANDBOX
from ..logging import get_logger
from ..models import PreviewResult, ProjectFileSet

if TYPE_CHECKING:  # pragma: no cover
    from .composer import DocumentComposer

TEMPLATES_DIR = Path(__file__).with_name("templates")

logger = get_logger("preview.navigation")

_environment: Optional[Environment] = None


class PageMessage(BaseModel):
    """Request to show another page of the project."""

    model_config = ConfigDict(extra="forbid")

    type: Literal["NAVIGATE_TO_PAGE"]
    targetFile: str = Field(min_length=1)
    hash: Optional[str] = None


class SectionMessage(BaseModel):
    """In-page anchor change; informational only."""

    model_config = ConfigDict(extra="forbid")

    type: Literal["NAVIGATE_TO_SECTION"]
    hash: str


NavigationMessage = Annotated[Union[PageMessage, SectionMessage], Field(discriminator="type")]
_MESSAGE_ADAPTER: TypeAdapter[Union[PageMessage, SectionMessage]] = TypeAdapter(NavigationMessage)


def parse_message(payload: Any) -> Optional[Union[PageMessage, SectionMessage]]:
    """Validate ``payload`` by shape; anything unrecognised returns None."""
    try:
        if isinstance(payload, (str, bytes)):
            return _MESSAGE_ADAPTER.validate_json(payload)
        return _MESSAGE_ADAPTER.validate_python(payload)
    except ValidationError as exc:
        logger.debug("Ignoring unrecognised message: %s", exc.errors(include_url=False))
        return None


def _templates() -> Environment:
    global _environment
    if _environment is None:
        _environment = Environment(
            loader=FileSystemLoader(str(TEMPLATES_DIR)),
            autoescape=False,
            trim_blocks=True,
            lstrip_blocks=True,
        )
    return _environment


def render_shim(
    current_page: str,
    available_pages: Sequence[str],
    initial_hash: str | None = None,
) -> str:
    """Render the script appended to every composed document."""
    template = _templates().get_template("navigation_shim.js.j2")
    return template.render(
        current_page=current_page,
        available_pages=list(available_pages),
        initial_hash=initial_hash or "",
    ).strip()


@dataclass
class NavigationOutcome:
    """Result of handling one message from the preview surface."""

    accepted: bool
    remount: bool = False
    preview: Optional[PreviewResult] = None
    hash: Optional[str] = None


class NavigationHost:
    """Host-side state for one mounted preview surface.

    ``current_page`` starts empty and becomes the composed target path once
    :meth:`load` runs. ``mount_key`` increments each time the surface must be
    replaced so renderers can drop the previous surface and its scripts.
    """

    def __init__(
        self,
        files: ProjectFileSet,
        composer: "DocumentComposer | None" = None,
        *,
        sandbox: str = DEFAULT_SANDBOX,
    ) -> None:
        if composer is None:
            from .composer import DocumentComposer

            composer = DocumentComposer()
        self.files = files
        self.composer = composer
        self.sandbox = sandbox
        self.current_page = ""
        self.current_hash: Optional[str] = None
        self.mount_key = 0
        self.preview: Optional[PreviewResult] = None
        self.available_pages: List[str] = [item.path for item in files.markup()]

    def load(self, page: str | None = None) -> PreviewResult:
        """Compose ``page`` (or the entry page) and mount it."""
        return self._mount(page, None)

    def handle(self, payload: Any) -> NavigationOutcome:
        message = parse_message(payload)
        if message is None:
            return NavigationOutcome(accepted=False)
        if isinstance(message, SectionMessage):
            self.current_hash = message.hash
            logger.debug("Section changed to %s on %s", message.hash, self.current_page)
            return NavigationOutcome(accepted=True, hash=message.hash)
        logger.info("Navigating from %s to %s", self.current_page or "<none>", message.targetFile)
        preview = self._mount(message.targetFile, message.hash)
        return NavigationOutcome(accepted=True, remount=True, preview=preview, hash=message.hash)

    def _mount(self, page: str | None, hash: str | None) -> PreviewResult:
        preview = self.composer.compose(self.files, page, hash=hash)
        self.available_pages = list(preview.available_pages)
        self.current_page = preview.target or ""
        self.current_hash = hash
        self.mount_key += 1
        self.preview = preview
        return preview

    def render_page(self, *, title: str = "sitecraft preview", navigate_url: str = "/navigate") -> str:
        """Render the host page embedding the current surface."""
        preview = self.preview or self.load()
        return render_host_page(
            preview,
            mount_key=self.mount_key,
            title=title,
            navigate_url=navigate_url,
            sandbox=self.sandbox,
        )


def render_host_page(
    preview: PreviewResult,
    *,
    mount_key: int = 1,
    title: str = "sitecraft preview",
    navigate_url: str = "/navigate",
    sandbox: str = DEFAULT_SANDBOX,
) -> str:
    template = _templates().get_template("host.html.j2")
    return template.render(
        title=title,
        document=preview.document,
        current_page=preview.target or "",
        available_pages=preview.available_pages,
        mount_key=mount_key,
        navigate_url=navigate_url,
        sandbox=sandbox,
    )


__all__ = [
    "DEFAULT_SANDBOX",
    "NavigationHost",
    "NavigationMessage",
    "NavigationOutcome",
    "PageMessage",
    "SectionMessage",
    "parse_message",
    "render_host_page",
    "render_shim",
]
