"""
Portfolio Service - PDF export of a user's published projects

Pipeline per request:
1. resolve identity and style, set up the document (errors abort here,
   before any byte is sent)
2. walk the published projects in order, awaiting each image download
   before moving on; a failed image becomes an inline notice
3. lay out the PDF and stream it back in chunks
"""

import asyncio
import enum
import tempfile
import time
from dataclasses import dataclass, field
from typing import AsyncIterator, Awaitable, Callable, Dict, List, Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from app.core.config import settings
from app.core.exceptions import AssetError, DocumentInitError, IdentityNotFoundError
from app.core.logging_config import logger
from app.models.project import Project
from app.models.user import User
from app.services.asset_fetcher import RemoteAssetFetcher, asset_fetcher
from app.services.portfolio_renderer import IMAGE_DECODE_ERRORS, PortfolioRenderer, StyleProfile
from app.utils.links import ensure_scheme


NO_PROJECTS_NOTICE = "No projects available to display."
IMAGE_FAILED_NOTICE = "Image not available or failed to download"
NOT_PROVIDED = "Not provided"
NONE_LISTED = "None"


class PortfolioStyle(str, enum.Enum):
    CLASSIC = "classic"
    MODERN = "modern"


STYLE_PROFILES: Dict[PortfolioStyle, StyleProfile] = {
    PortfolioStyle.CLASSIC: StyleProfile(
        key="classic",
        primary_color="#212529",
        accent_color="#007bff",
        typeface="Helvetica",
        bold_typeface="Helvetica-Bold",
    ),
    PortfolioStyle.MODERN: StyleProfile(
        key="modern",
        primary_color="#0f172a",
        accent_color="#14b8a6",
        typeface="Times-Roman",
        bold_typeface="Times-Bold",
    ),
}


def resolve_style(style_name: Optional[str]) -> StyleProfile:
    """Unknown or missing style names fall back to classic"""
    try:
        return STYLE_PROFILES[PortfolioStyle((style_name or "").strip().lower())]
    except ValueError:
        return STYLE_PROFILES[PortfolioStyle.CLASSIC]


@dataclass
class ProjectSection:
    """What was rendered for one project"""
    project_id: str
    title: str
    problem_statement: str
    description: str
    tags: str
    collaborators: str
    other_contributors: str
    image_url: Optional[str] = None
    image_embedded: bool = False
    image_notice: Optional[str] = None
    start_page: Optional[int] = None


@dataclass
class PortfolioDocument:
    """Ephemeral description of one generated portfolio"""
    style: StyleProfile
    name: str
    email: str
    linkedin_url: Optional[str]
    sections: List[ProjectSection] = field(default_factory=list)
    notice: Optional[str] = None
    footer: str = ""

    @property
    def filename(self) -> str:
        return f"sharecase_portfolio_{self.style.key}.pdf"


CancelCheck = Callable[[], Awaitable[bool]]


class PortfolioExport:
    """
    A prepared portfolio: identity resolved, projects loaded, document set
    up. Rendering starts when the bytes are iterated.
    """

    media_type = "application/pdf"

    def __init__(
        self,
        user: User,
        projects: List[Project],
        renderer: PortfolioRenderer,
        document: PortfolioDocument,
        fetcher: RemoteAssetFetcher,
        output,
    ):
        self.user = user
        self.projects = projects
        self.renderer = renderer
        self.document = document
        self.fetcher = fetcher
        self._output = output
        self.cancelled = False
        self.rendered = False

    @property
    def filename(self) -> str:
        return self.document.filename

    async def render(self, is_cancelled: Optional[CancelCheck] = None) -> PortfolioDocument:
        """Fetch images one project at a time and lay out the PDF"""
        start = time.perf_counter()
        doc = self.document
        renderer = self.renderer

        renderer.add_header(doc.name, doc.email, doc.linkedin_url)

        if not self.projects:
            doc.notice = NO_PROJECTS_NOTICE
            renderer.add_empty_notice(NO_PROJECTS_NOTICE)

        for index, project in enumerate(self.projects):
            if is_cancelled is not None and await is_cancelled():
                logger.info(
                    f"[Portfolio] Client went away, abandoning export for {self.user.id} "
                    f"after {index}/{len(self.projects)} projects"
                )
                self.cancelled = True
                return doc

            section = _section_for(project)
            doc.sections.append(section)

            def mark_page(page: int, section: ProjectSection = section) -> None:
                section.start_page = page

            renderer.start_project(new_page=index > 0, on_page=mark_page)
            renderer.add_project_title(section.title)

            if section.image_url:
                await self._render_image(section)

            renderer.add_field("Problem Statement:", section.problem_statement)
            renderer.add_field("Description:", section.description)
            renderer.add_field("Tags:", section.tags)
            renderer.add_field("Collaborators:", section.collaborators)
            renderer.add_field("Other Contributors:", section.other_contributors)

        # Layout is CPU-bound, keep the event loop free
        await asyncio.to_thread(renderer.build)
        self.rendered = True

        logger.log_performance(
            "portfolio_render",
            (time.perf_counter() - start) * 1000,
            threshold_ms=5000,
            projects=len(self.projects),
            style=doc.style.key,
        )
        return doc

    async def _render_image(self, section: ProjectSection) -> None:
        try:
            data = await self.fetcher.fetch(section.image_url)
            # Pillow decode and resize are CPU-bound
            await asyncio.to_thread(self.renderer.add_image, data)
            section.image_embedded = True
        except AssetError as e:
            logger.warning(f"[Portfolio] Image skipped for project {section.project_id}: {e.message}")
            section.image_notice = IMAGE_FAILED_NOTICE
            self.renderer.add_image_notice(IMAGE_FAILED_NOTICE)
        except IMAGE_DECODE_ERRORS as e:
            # Downloaded bytes were not a usable image
            logger.warning(f"[Portfolio] Unreadable image for project {section.project_id}: {e}")
            section.image_notice = IMAGE_FAILED_NOTICE
            self.renderer.add_image_notice(IMAGE_FAILED_NOTICE)

    async def iter_bytes(
        self,
        is_cancelled: Optional[CancelCheck] = None,
        chunk_size: Optional[int] = None,
    ) -> AsyncIterator[bytes]:
        """Render (once) and yield the PDF in chunks"""
        chunk_size = chunk_size or settings.PORTFOLIO_STREAM_CHUNK_SIZE
        try:
            if not self.rendered:
                await self.render(is_cancelled)
            if self.cancelled:
                return
            self._output.seek(0)
            while True:
                chunk = self._output.read(chunk_size)
                if not chunk:
                    break
                yield chunk
        finally:
            self.close()

    async def read_all(self) -> bytes:
        return b"".join([chunk async for chunk in self.iter_bytes()])

    def close(self) -> None:
        if not self._output.closed:
            self._output.close()


def _section_for(project: Project) -> ProjectSection:
    image_url = project.primary_image_url
    if image_url and settings.DEFAULT_PROJECT_IMAGE_MARKER in image_url:
        image_url = None

    collaborator_names = [c.name for c in project.collaborators if c.name]

    return ProjectSection(
        project_id=project.id,
        title=project.title or "Untitled Project",
        problem_statement=project.problem_statement or NOT_PROVIDED,
        description=project.description or NOT_PROVIDED,
        tags=", ".join(t for t in (project.tags or []) if t) or NONE_LISTED,
        collaborators=", ".join(collaborator_names) or NONE_LISTED,
        other_contributors=project.other_contributors or NONE_LISTED,
        image_url=image_url or None,
    )


class PortfolioAssembler:
    """Prepares portfolio exports for an identity"""

    def __init__(self, db: AsyncSession, fetcher: Optional[RemoteAssetFetcher] = None):
        self.db = db
        self.fetcher = fetcher or asset_fetcher

    async def published_projects(self, user_id: str) -> List[Project]:
        """Published projects in creation order, collaborators loaded"""
        result = await self.db.execute(
            select(Project)
            .options(selectinload(Project.collaborators))
            .where(Project.user_id == str(user_id), Project.is_published.is_(True))
            .order_by(Project.created_at, Project.id)
        )
        return list(result.scalars().all())

    async def generate(self, user_id: str, style_name: Optional[str] = None) -> PortfolioExport:
        """
        Resolve everything that can fail before streaming starts.

        Raises:
            IdentityNotFoundError: unknown user
            DocumentInitError: the PDF document could not be set up
        """
        user = await self.db.get(User, str(user_id), populate_existing=True)
        if user is None:
            raise IdentityNotFoundError(str(user_id))

        style = resolve_style(style_name)

        output = None
        try:
            output = tempfile.SpooledTemporaryFile(max_size=8 * 1024 * 1024)
            renderer = PortfolioRenderer(
                output,
                style,
                image_width=settings.PORTFOLIO_IMAGE_WIDTH,
                footer_text=settings.PORTFOLIO_FOOTER_TEXT,
            )
        except DocumentInitError:
            if output is not None:
                output.close()
            raise
        except OSError as e:
            if output is not None:
                output.close()
            raise DocumentInitError(f"Failed to allocate portfolio buffer: {e}") from e

        projects = await self.published_projects(user.id)

        document = PortfolioDocument(
            style=style,
            name=user.name or "Anonymous",
            email=user.email or "",
            linkedin_url=ensure_scheme(user.linkedin_url),
            footer=settings.PORTFOLIO_FOOTER_TEXT,
        )

        logger.info(
            f"[Portfolio] Export prepared for {user.id}: {len(projects)} projects, style={style.key}"
        )
        return PortfolioExport(user, projects, renderer, document, self.fetcher, output)
