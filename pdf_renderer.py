#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
Portfolio PDF Renderer

Draws the cover page and every planned project page onto a reportlab
canvas, in order, and saves the document. The layout itself is decided by
layout_planner; this module only converts planned positions (top-left
origin) into PDF coordinates (bottom-left origin) and issues the calls.
"""

import logging
from pathlib import Path
from typing import List, Union, BinaryIO, Optional

from reportlab.lib import colors
from reportlab.pdfgen import canvas

from image_fitter import prepare_raster
from layout_planner import LayoutPlanner, TextDraw, ImageDraw, Draw, LEADING
from project_manager import PortfolioConfig, Project

logger = logging.getLogger(__name__)

SUBJECT = "Creative Portfolio"
CREATOR = "PDF Portfolio Generator"


def parse_color(color_value):
    """Parse color from a hex string or a reportlab color name."""
    if isinstance(color_value, str):
        if color_value.startswith('#'):
            try:
                return colors.HexColor(color_value)
            except ValueError:
                return colors.black
        color = getattr(colors, color_value, None)
        if isinstance(color, colors.Color):
            return color
        logger.warning(f"Unknown color '{color_value}', using black")
    return colors.black


class PDFRenderer:
    """Renders a whole portfolio to one PDF."""

    def __init__(self, config: PortfolioConfig, output: Union[str, Path, BinaryIO],
                 planner: Optional[LayoutPlanner] = None, canvas_class=canvas.Canvas):
        self.config = config
        self.output = output
        self.planner = planner or LayoutPlanner(config)
        self.canvas_class = canvas_class

        self.page_width = self.planner.geometry.width
        self.page_height = self.planner.geometry.height
        self.border_color = parse_color(config.image_border.color)

        self.canvas = None
        self.page_count = 0
        self.pending_break = False

    def render(self, projects: List[Project]) -> bool:
        """Renders cover + projects. Returns False if the PDF can't be written."""
        output = str(self.output) if isinstance(self.output, Path) else self.output
        try:
            self.canvas = self.canvas_class(
                output,
                pagesize=(self.page_width, self.page_height),
                pageCompression=1,
            )
        except Exception as e:
            logger.error(f"Could not create the PDF: {e}")
            return False

        self._set_metadata()

        self._draw(self.planner.cover_page())
        self._end_page()

        for project in projects:
            logger.info(f"Rendering {project.title}...")
            for page in self.planner.plan_project(project):
                self._start_page()
                self._draw(page.draws)
                if page.break_after:
                    self._end_page()
                else:
                    self.pending_break = True

        # save() alone drops a last page that has no drawn content
        if self.pending_break:
            self._end_page()
            self.pending_break = False

        try:
            self.canvas.save()
        except Exception as e:
            logger.error(f"Could not save the PDF: {e}")
            return False

        return True

    def _set_metadata(self):
        self.canvas.setTitle(self.config.title)
        self.canvas.setAuthor(self.config.author)
        self.canvas.setSubject(SUBJECT)
        self.canvas.setCreator(CREATOR)

    def _start_page(self):
        """Emits a deferred page boundary before drawing more content."""
        if self.pending_break:
            self._end_page()
            self.pending_break = False

    def _end_page(self):
        self.canvas.showPage()
        self.page_count += 1

    def _draw(self, draws: List[Draw]):
        for draw in draws:
            if isinstance(draw, TextDraw):
                self._draw_text(draw)
            elif isinstance(draw, ImageDraw):
                self._draw_image(draw)

    def _draw_text(self, draw: TextDraw):
        """Draws wrapped lines; the first baseline sits one font size below draw.y."""
        self.canvas.setFillColor(colors.black)
        self.canvas.setFont(draw.font, draw.size)

        leading = draw.size * LEADING
        for i, line in enumerate(draw.lines):
            baseline = self.page_height - (draw.y + i * leading + draw.size)
            if draw.align == 'center':
                self.canvas.drawCentredString(draw.x + draw.width / 2, baseline, line)
            else:
                self.canvas.drawString(draw.x, baseline, line)

    def _draw_image(self, draw: ImageDraw):
        rect = draw.rect
        image = draw.image
        dpi = self.config.dpi
        y_pdf = self.page_height - rect.y - rect.height

        try:
            source = prepare_raster(image.path, image.width, rect, dpi)
            self.canvas.drawImage(
                source,
                rect.x, y_pdf,
                width=rect.width,
                height=rect.height,
                mask='auto'
            )
        except Exception as e:
            logger.error(f"Error adding image {image.name}: {e}")
            return

        if draw.border:
            border = self.config.image_border
            self.canvas.saveState()
            self.canvas.setLineWidth(border.width)
            self.canvas.setStrokeColor(self.border_color)
            self.canvas.rect(rect.x, y_pdf, rect.width, rect.height, stroke=1, fill=0)
            self.canvas.restoreState()

        logger.debug(
            f"Added image: {image.name} ({round(rect.width)}x{round(rect.height)}) "
            f"DPI: {dpi}{' [BORDER]' if draw.border else ''}"
        )
