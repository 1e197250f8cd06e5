#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
Page Layout Planner

Turns a project into a sequence of pages, each one a list of draw
instructions with absolute positions. The planner never touches the PDF:
the renderer just executes what is planned here.

PAGE TYPES:
- info:    project text (title, medium, year, credits, description, link)
           and optionally an image. On landscape pages with an image the
           text goes in a left column and the image in a right column.
- gallery: 1 image fills the page, 2 images are stacked, 3+ go in a grid
- full:    one image filling the content area

Projects without an explicit layout get a fixed info page followed by
gallery pages of two images each.

All coordinates are points with the origin at the TOP-LEFT of the page.
"""

import logging
from typing import List, Optional, Tuple, Union, Iterator
from dataclasses import dataclass

import numpy as np
from reportlab.lib.utils import simpleSplit

from image_fitter import PlacementRect, fit_image
from project_manager import (
    PortfolioConfig, Project, ImageRecord,
    InfoPage, GalleryPage, FullPage, LayoutInstruction,
    is_image_name, parse_layout,
)

logger = logging.getLogger(__name__)

LEADING = 1.2           # Line height as a multiple of the font size
GALLERY_GAP = 20        # Space between gallery cells
TOP_OFFSET = 20         # Info content starts this far below the margin
COLUMN_GAP = 40         # Space between text and image columns
TEXT_COLUMN_SHARE = 0.45
IMAGE_COLUMN_SHARE = 0.55
INLINE_IMAGE_MAX = 400  # Cap for images flowing in a single-column info page
IMAGES_PER_DEFAULT_PAGE = 2

# Fixed template for projects without a layout
DEFAULT_INFO_FONTS = {
    "title": ("Helvetica-Bold", 24),
    "subtitle": ("Helvetica", 14),
    "credits": ("Helvetica-Oblique", 12),
    "description": ("Helvetica", 12),
    "link": ("Helvetica-Oblique", 10),
}


# ============================================================================
# DRAW INSTRUCTIONS
# ============================================================================

@dataclass
class TextDraw:
    """A block of text wrapped to `width`, top edge at `y`."""
    text: str
    x: float
    y: float
    width: float
    font: str
    size: float
    align: str = 'left'

    @property
    def lines(self) -> List[str]:
        return wrap_text(self.text, self.font, self.size, self.width)

    @property
    def height(self) -> float:
        return text_height(self.text, self.font, self.size, self.width)


@dataclass
class ImageDraw:
    """An image placed inside `box` at `rect` (aspect ratio preserved)."""
    image: ImageRecord
    box: PlacementRect
    rect: PlacementRect

    @property
    def border(self) -> bool:
        return self.image.border


Draw = Union[TextDraw, ImageDraw]


@dataclass
class PlannedPage:
    """One output page. `break_after` is False only where a page boundary is deferred."""
    kind: str
    draws: List[Draw]
    break_after: bool = True


@dataclass
class PageGeometry:
    width: float
    height: float
    margin: float

    @property
    def content_width(self) -> float:
        return self.width - self.margin * 2

    @property
    def content_height(self) -> float:
        return self.height - self.margin * 2

    @property
    def is_landscape(self) -> bool:
        return self.width > self.height

    @classmethod
    def from_config(cls, config: PortfolioConfig) -> 'PageGeometry':
        width, height = config.page_dimensions()
        return cls(width, height, config.margin)


# ============================================================================
# TEXT MEASUREMENT
# ============================================================================

def wrap_text(text: str, font: str, size: float, width: float) -> List[str]:
    """Splits text into lines that fit `width` (explicit newlines are kept)."""
    if not text:
        return []
    return simpleSplit(text, font, size, width)


def text_height(text: str, font: str, size: float, width: float) -> float:
    return len(wrap_text(text, font, size, width)) * size * LEADING


# ============================================================================
# GALLERY GRID
# ============================================================================

def gallery_boxes(count: int, x: float, y: float, width: float, height: float,
                  gap: float = GALLERY_GAP) -> List[PlacementRect]:
    """
    Cells for a gallery of `count` images inside the given area.

    - 1 image: the whole area
    - 2 images: stacked vertically, whatever their orientation
    - 3+: ceil(sqrt(n)) columns, filled row by row; the last row is not re-centered
    """
    if count <= 0:
        return []

    if count == 1:
        return [PlacementRect(x, y, width, height)]

    if count == 2:
        cell_h = (height - gap) / 2
        return [
            PlacementRect(x, y, width, cell_h),
            PlacementRect(x, y + cell_h + gap, width, cell_h),
        ]

    cols = int(np.ceil(np.sqrt(count)))
    rows = int(np.ceil(count / cols))
    cell_w = (width - gap * (cols - 1)) / cols
    cell_h = (height - gap * (rows - 1)) / rows

    boxes = []
    for i in range(count):
        row, col = divmod(i, cols)
        boxes.append(PlacementRect(
            x + col * (cell_w + gap),
            y + row * (cell_h + gap),
            cell_w,
            cell_h,
        ))
    return boxes


def place_image(image: ImageRecord, box: PlacementRect) -> ImageDraw:
    rect = fit_image(image.width, image.height, box.x, box.y, box.width, box.height)
    return ImageDraw(image=image, box=box, rect=rect)


# ============================================================================
# PLANNER
# ============================================================================

class LayoutPlanner:
    """Plans the pages of each project for one portfolio."""

    def __init__(self, config: PortfolioConfig, geometry: Optional[PageGeometry] = None):
        self.config = config
        self.geometry = geometry or PageGeometry.from_config(config)
        self.fonts = config.fonts

    def plan_project(self, project: Project) -> Iterator[PlannedPage]:
        """
        Yields the project's pages in order.

        Only a project without `layout.pages` gets the default pages; an
        explicit but empty layout yields nothing.
        """
        if project.layout is None:
            yield from self._plan_default(project)
            return

        for instruction in parse_layout(project.layout):
            yield PlannedPage(kind=instruction.kind, draws=self.plan_instruction(project, instruction))

    def plan_instruction(self, project: Project, instruction: LayoutInstruction) -> List[Draw]:
        if isinstance(instruction, InfoPage):
            return self.info_page(project, instruction.content)
        if isinstance(instruction, GalleryPage):
            images = [project.find_image(name) for name in instruction.content if is_image_name(name)]
            return self.gallery_page([image for image in images if image is not None])
        if isinstance(instruction, FullPage):
            return self.full_page(project, instruction.content)
        raise TypeError(f"Unknown layout instruction: {instruction!r}")

    # ------------------------------------------------------------------
    # Cover
    # ------------------------------------------------------------------

    def cover_page(self) -> List[Draw]:
        """Title a third of the way down, contact block near the bottom."""
        geo = self.geometry
        config = self.config
        fonts = self.fonts
        width = geo.content_width

        draws = []
        title = TextDraw(config.title, geo.margin, geo.height / 3, width, fonts['title'], 36, 'center')
        draws.append(title)

        if config.subtitle:
            draws.append(TextDraw(config.subtitle, geo.margin, title.y + title.height + 20,
                                  width, fonts['heading'], 18, 'center'))

        contact = TextDraw(config.author, geo.margin, geo.height - geo.margin * 5, width, fonts['body'], 12, 'center')
        draws.append(contact)
        for line in (config.email, config.website):
            if line:
                contact = TextDraw(line, geo.margin, contact.y + contact.height + 15, width, fonts['body'], 12, 'center')
                draws.append(contact)

        return draws

    # ------------------------------------------------------------------
    # Default layout
    # ------------------------------------------------------------------

    def _plan_default(self, project: Project) -> Iterator[PlannedPage]:
        yield PlannedPage(kind='info', draws=self.default_info_page(project))

        images = project.images
        for i in range(0, len(images), IMAGES_PER_DEFAULT_PAGE):
            page_images = images[i:i + IMAGES_PER_DEFAULT_PAGE]
            yield PlannedPage(
                kind='gallery',
                draws=self.gallery_page(page_images),
                break_after=i + IMAGES_PER_DEFAULT_PAGE < len(images),
            )

    def default_info_page(self, project: Project) -> List[Draw]:
        """Fixed single-column template. Uses base fonts, not the configured roles."""
        geo = self.geometry
        subtitle = f"{project.medium} • {project.year}"
        if project.duration:
            subtitle += f" • {project.duration}"

        # (space before, text, style)
        blocks = [
            (TOP_OFFSET, project.title, 'title'),
            (20, subtitle, 'subtitle'),
            (15, self._credits_text(project), 'credits'),
            (30, project.description, 'description'),
            (20, project.link, 'link'),
        ]

        draws = []
        cursor = geo.margin
        for space_before, text, style in blocks:
            if not text:
                continue
            font, size = DEFAULT_INFO_FONTS[style]
            draw = TextDraw(text, geo.margin, cursor + space_before, geo.content_width, font, size)
            draws.append(draw)
            cursor = draw.y + draw.height
        return draws

    # ------------------------------------------------------------------
    # Info pages
    # ------------------------------------------------------------------

    def info_page(self, project: Project, content: List[str]) -> List[Draw]:
        has_image = any(is_image_name(token) for token in content)
        if has_image and self.geometry.is_landscape:
            return self.two_column_info_page(project, content)
        return self.single_column_info_page(project, content)

    @staticmethod
    def _credits_text(project: Project) -> str:
        lines = []
        if project.collective:
            lines.append(f"Collective: {project.collective}")
        if project.curator:
            lines.append(f"Curator: {project.curator}")
        if project.publisher:
            lines.append(f"Published by: {project.publisher}")
        return "\n".join(lines)

    def text_style(self, project: Project, token: str) -> Optional[Tuple[str, str, float, float]]:
        """
        (text, font, size, space after) for a keyword token, or None when the
        token is not a keyword. Credits and link are None when empty; medium,
        year and description keep their spacing even when blank.
        """
        fonts = self.fonts
        if token == 'title':
            return project.title, fonts['title'], 24, 20
        if token == 'medium':
            text = project.medium
            if project.duration:
                text += f" • {project.duration}"
            return text, fonts['heading'], 14, 10
        if token == 'year':
            return project.year, fonts['heading'], 14, 10
        if token == 'credits':
            text = self._credits_text(project)
            return (text, fonts['caption'], 12, 15) if text else None
        if token == 'description':
            return project.description, fonts['body'], 12, 20
        if token == 'link':
            return (project.link, fonts['caption'], 10, 15) if project.link else None
        return None

    def flow_text(self, project: Project, token: str, cursor: float,
                  x: float, width: float) -> Tuple[List[Draw], float]:
        """Draws one keyword at `cursor`; returns the draws and the next cursor."""
        style = self.text_style(project, token)
        if style is None:
            return [], cursor
        text, font, size, space_after = style
        if not text:
            return [], cursor + space_after
        draw = TextDraw(text, x, cursor, width, font, size)
        return [draw], cursor + draw.height + space_after

    def flow_image(self, project: Project, token: str, cursor: float) -> Tuple[List[Draw], float]:
        """Places an inline image below `cursor` in a single-column page."""
        geo = self.geometry
        image = project.find_image(token)
        if image is None:
            return [], cursor

        remaining = geo.height - cursor - geo.margin
        max_height = min(remaining * 0.6, geo.height * 0.4, INLINE_IMAGE_MAX)
        if max_height <= 0:
            logger.debug(f"No room left for {token} on info page of {project.title}")
            return [], cursor

        box = PlacementRect(geo.margin, cursor, geo.content_width, max_height)
        return [place_image(image, box)], cursor + max_height + 20

    def single_column_info_page(self, project: Project, content: List[str]) -> List[Draw]:
        geo = self.geometry
        draws = []
        cursor = geo.margin + TOP_OFFSET

        for token in content:
            if is_image_name(token):
                new_draws, cursor = self.flow_image(project, token, cursor)
            else:
                new_draws, cursor = self.flow_text(project, token, cursor, geo.margin, geo.content_width)
            draws.extend(new_draws)

        return draws

    def column_widths(self) -> Tuple[float, float]:
        """(text column, image column) widths for two-column info pages."""
        usable = self.geometry.content_width - COLUMN_GAP
        return usable * TEXT_COLUMN_SHARE, usable * IMAGE_COLUMN_SHARE

    def text_block_height(self, project: Project, content: List[str], width: float) -> float:
        """Total height of the keyword tokens, spacing included, wrapped to `width`."""
        total = 0.0
        for token in content:
            if is_image_name(token):
                continue
            style = self.text_style(project, token)
            if style is None:
                continue
            text, font, size, space_after = style
            total += text_height(text, font, size, width) + space_after
        return total

    def two_column_info_page(self, project: Project, content: List[str]) -> List[Draw]:
        """Text vertically centered on the left, first image on the right."""
        geo = self.geometry
        text_width, image_width = self.column_widths()
        image_x = geo.margin + text_width + COLUMN_GAP

        block_height = self.text_block_height(project, content, text_width)
        cursor = geo.margin + (geo.content_height - block_height) / 2

        draws = []
        for token in content:
            if is_image_name(token):
                continue
            new_draws, cursor = self.flow_text(project, token, cursor, geo.margin, text_width)
            draws.extend(new_draws)

        image_token = next(token for token in content if is_image_name(token))
        image = project.find_image(image_token)
        if image is not None:
            box = PlacementRect(image_x, geo.margin + TOP_OFFSET, image_width, geo.height - geo.margin * 3)
            draws.append(place_image(image, box))

        return draws

    # ------------------------------------------------------------------
    # Image pages
    # ------------------------------------------------------------------

    def gallery_page(self, images: List[ImageRecord]) -> List[Draw]:
        geo = self.geometry
        boxes = gallery_boxes(len(images), geo.margin, geo.margin, geo.content_width, geo.content_height)
        return [place_image(image, box) for image, box in zip(images, boxes)]

    def full_page(self, project: Project, content: List[str]) -> List[Draw]:
        if not content:
            return []
        image = project.find_image(content[0])
        if image is None:
            return []
        geo = self.geometry
        box = PlacementRect(geo.margin, geo.margin, geo.content_width, geo.content_height)
        return [place_image(image, box)]
