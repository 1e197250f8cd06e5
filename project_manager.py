#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
Portfolio Project Manager

This module loads everything the portfolio is built from:
- config.json at the root of the input directory (portfolio-wide settings)
- one project.json per project subdirectory
- the images each project references (pixel size and format)

Nothing here is fatal: a broken project or image is skipped with a warning,
and a missing config falls back to built-in defaults.
"""

import json
import logging
from pathlib import Path
from typing import List, Dict, Any, Optional, Tuple, Union
from dataclasses import dataclass, field

from PIL import Image
from reportlab.lib import pagesizes
from reportlab.pdfbase import pdfmetrics

logger = logging.getLogger(__name__)

# Constants
CONFIG_FILENAME = "config.json"
PROJECT_FILENAME = "project.json"
IMAGE_EXTENSIONS = {".jpg", ".jpeg", ".png", ".tif", ".tiff", ".webp"}

DEFAULT_MARGIN = 30
DEFAULT_DPI = 300
DEFAULT_BORDER_WIDTH = 0.5
DEFAULT_BORDER_COLOR = "#CCCCCC"

DEFAULT_FONTS = {
    "title": "Helvetica-Bold",
    "heading": "Helvetica",
    "body": "Helvetica",
    "caption": "Helvetica-Oblique",
}

PAGE_SIZES = {
    "A3": pagesizes.A3,
    "A4": pagesizes.A4,
    "A5": pagesizes.A5,
    "LETTER": pagesizes.LETTER,
    "LEGAL": pagesizes.LEGAL,
    "TABLOID": pagesizes.TABLOID,
}

# Used when config.json is missing or unreadable
FALLBACK_CONFIG = {
    "title": "Portfolio",
    "subtitle": "Creative Work",
    "author": "Artist",
    "email": "",
    "website": "",
    "output": "portfolio.pdf",
    "pageSize": "A4",
    "margin": 50,
}


def is_image_name(name: str) -> bool:
    """True if the token ends with a known image extension (case-insensitive)."""
    if not isinstance(name, str):
        return False
    return Path(name).suffix.lower() in IMAGE_EXTENSIONS


def _positive(value: Any, default: float) -> float:
    """Returns value if it is a positive number, default otherwise."""
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return default
    return value if value > 0 else default


def _font_or_default(name: Any, role: str) -> str:
    default = DEFAULT_FONTS[role]
    if not name or not isinstance(name, str):
        return default
    try:
        pdfmetrics.getFont(name)
    except Exception:
        logger.warning(f"Font '{name}' not available for role '{role}', using {default}")
        return default
    return name


# ============================================================================
# DATA MODEL
# ============================================================================

@dataclass
class BorderPolicy:
    """Global image border settings."""
    enabled: bool = False
    width: float = DEFAULT_BORDER_WIDTH
    color: str = DEFAULT_BORDER_COLOR


@dataclass
class PortfolioConfig:
    """Portfolio-wide settings, read-only once loaded."""
    title: str = "Portfolio"
    subtitle: str = ""
    author: str = "Artist"
    email: str = ""
    website: str = ""
    output: str = "portfolio.pdf"
    page_size: str = "A4"
    orientation: str = "landscape"
    margin: float = DEFAULT_MARGIN
    dpi: int = DEFAULT_DPI
    fonts: Dict[str, str] = field(default_factory=lambda: dict(DEFAULT_FONTS))
    image_border: BorderPolicy = field(default_factory=BorderPolicy)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'PortfolioConfig':
        """Builds a config from the parsed config.json, defaulting missing fields."""
        fonts_data = data.get('fonts')
        if not isinstance(fonts_data, dict):
            fonts_data = {}
        fonts = {role: _font_or_default(fonts_data.get(role), role) for role in DEFAULT_FONTS}

        border_data = data.get('imageBorder')
        if not isinstance(border_data, dict):
            border_data = {}
        border = BorderPolicy(
            enabled=bool(border_data.get('enabled', False)),
            width=_positive(border_data.get('width'), DEFAULT_BORDER_WIDTH),
            color=border_data.get('color') or DEFAULT_BORDER_COLOR,
        )

        orientation = str(data.get('orientation') or 'landscape').lower()
        if orientation not in ('landscape', 'portrait'):
            logger.warning(f"Unknown orientation '{orientation}', using landscape")
            orientation = 'landscape'

        return cls(
            title=str(data.get('title') or 'Portfolio'),
            subtitle=str(data.get('subtitle') or ''),
            author=str(data.get('author') or 'Artist'),
            email=str(data.get('email') or ''),
            website=str(data.get('website') or ''),
            output=str(data.get('output') or 'portfolio.pdf'),
            page_size=str(data.get('pageSize') or 'A4'),
            orientation=orientation,
            margin=_positive(data.get('margin'), DEFAULT_MARGIN),
            dpi=int(_positive(data.get('dpi'), DEFAULT_DPI)),
            fonts=fonts,
            image_border=border,
        )

    @classmethod
    def fallback(cls) -> 'PortfolioConfig':
        return cls.from_dict(FALLBACK_CONFIG)

    def page_dimensions(self) -> Tuple[float, float]:
        """(width, height) in points for the configured size and orientation."""
        size = PAGE_SIZES.get(self.page_size.upper())
        if size is None:
            logger.warning(f"Unknown page size '{self.page_size}', using A4")
            size = pagesizes.A4
        if self.orientation == 'portrait':
            return pagesizes.portrait(size)
        return pagesizes.landscape(size)


@dataclass
class ImageRef:
    """An image reference as declared in project.json."""
    name: str
    border: bool = False


@dataclass
class ImageRecord:
    """A referenced image that exists on disk and could be probed."""
    name: str
    path: Path
    width: int
    height: int
    format: str
    border: bool = False

    @property
    def ratio(self) -> float:
        return self.width / self.height


@dataclass
class Project:
    """One project subdirectory, immutable once loaded."""
    directory: str
    path: Path
    title: str
    medium: str = ""
    year: str = ""
    description: str = ""
    duration: str = ""
    collective: str = ""
    curator: str = ""
    publisher: str = ""
    link: str = ""
    image_refs: List[ImageRef] = field(default_factory=list)
    images: List[ImageRecord] = field(default_factory=list)
    layout: Optional[List[Dict[str, Any]]] = None

    def find_image(self, name: str) -> Optional[ImageRecord]:
        """Looks up a resolved image by filename (first match)."""
        for record in self.images:
            if record.name == name:
                return record
        return None


@dataclass
class InfoPage:
    """Project text, optionally with an image."""
    content: List[str]
    kind: str = 'info'


@dataclass
class GalleryPage:
    """Several images on one page."""
    content: List[str]
    kind: str = 'gallery'


@dataclass
class FullPage:
    """One image filling the page (first content token)."""
    content: List[str]
    kind: str = 'full'


LayoutInstruction = Union[InfoPage, GalleryPage, FullPage]

PAGE_TYPES = {
    'info': InfoPage,
    'gallery': GalleryPage,
    'full': FullPage,
}


def parse_layout(pages: Optional[List[Any]]) -> List[LayoutInstruction]:
    """
    Converts `layout.pages` from project.json into typed instructions.

    Pages with an unknown type are dropped with a warning. Image names in
    the content are kept as plain strings and resolved when the page is
    planned, so the same image may appear on several pages.
    """
    instructions = []
    for page in pages or []:
        if not isinstance(page, dict):
            logger.warning(f"Ignoring layout page that is not an object: {page!r}")
            continue

        page_class = PAGE_TYPES.get(page.get('type'))
        if page_class is None:
            logger.warning(f"Ignoring layout page with unknown type: {page.get('type')!r}")
            continue

        content = page.get('content')
        if not isinstance(content, list):
            content = []
        instructions.append(page_class(content=[str(item) for item in content]))

    return instructions


# ============================================================================
# CONFIG
# ============================================================================

def load_config(input_dir: Path, config_name: str = CONFIG_FILENAME) -> PortfolioConfig:
    """
    Loads config.json from the input directory.

    A missing or malformed file is not fatal: the built-in defaults are used
    and a warning is logged.
    """
    config_path = Path(input_dir) / config_name

    try:
        with open(config_path, 'r', encoding='utf-8') as f:
            data = json.load(f)
        if not isinstance(data, dict):
            raise ValueError("top-level value is not an object")
    except (OSError, ValueError) as e:
        logger.warning(f"Config file not usable, using defaults: {config_path} ({e})")
        config = PortfolioConfig.fallback()
    else:
        config = PortfolioConfig.from_dict(data)

    logger.debug(f"Config loaded: {config}")
    return config


# ============================================================================
# IMAGE CATALOG
# ============================================================================

def normalize_image_refs(items: Any) -> List[ImageRef]:
    """
    Normalizes the project's `images` list.

    Accepts plain filenames and {name|file, border} objects, in any mix.
    """
    refs = []
    if not isinstance(items, list):
        return refs

    for item in items:
        if isinstance(item, str):
            refs.append(ImageRef(name=item))
        elif isinstance(item, dict):
            name = item.get('name') or item.get('file')
            if not name or not isinstance(name, str):
                logger.warning(f"Image entry without a name, ignoring: {item}")
                continue
            refs.append(ImageRef(name=name, border=bool(item.get('border', False))))
        else:
            logger.warning(f"Unsupported image entry, ignoring: {item!r}")

    return refs


def probe_image(image_path: Path) -> Tuple[int, int, str]:
    """Returns (width, height, format) of an image file."""
    with Image.open(image_path) as img:
        width, height = img.size
        return width, height, (img.format or '').lower()


def resolve_images(refs: List[ImageRef], base_path: Path, border_policy: BorderPolicy) -> List[ImageRecord]:
    """
    Resolves image references against files in the project directory.

    Missing or unreadable files are dropped with a warning. Order and
    duplicates are kept. The per-image border flag can only switch the
    border on; with the global border enabled every image gets one.
    """
    records = []
    base_path = Path(base_path)

    for ref in refs:
        image_path = base_path / ref.name

        if not image_path.is_file():
            logger.warning(f"Image not found: {image_path}")
            continue

        try:
            width, height, fmt = probe_image(image_path)
        except Exception as e:
            logger.warning(f"Could not read image {image_path}: {e}")
            continue

        if width <= 0 or height <= 0:
            logger.warning(f"Image has no pixels: {image_path}")
            continue

        records.append(ImageRecord(
            name=ref.name,
            path=image_path,
            width=width,
            height=height,
            format=fmt,
            border=ref.border or border_policy.enabled,
        ))

    return records


# ============================================================================
# PROJECTS
# ============================================================================

def list_project_dirs(input_dir: Path) -> List[Path]:
    """Lists project subdirectories sorted by name, ignoring hidden ones."""
    input_dir = Path(input_dir)
    return [
        entry for entry in sorted(input_dir.iterdir())
        if entry.is_dir() and not entry.name.startswith('.')
    ]


def _text(data: Dict[str, Any], key: str, default: str = "") -> str:
    value = data.get(key)
    if value is None:
        return default
    return str(value)


def load_project(project_dir: Path, config: PortfolioConfig) -> Project:
    """
    Reads one project.json and resolves its images.

    Raises OSError/ValueError if the descriptor can't be read or parsed.
    """
    project_dir = Path(project_dir)
    with open(project_dir / PROJECT_FILENAME, 'r', encoding='utf-8') as f:
        data = json.load(f)

    if not isinstance(data, dict):
        raise ValueError("project.json is not an object")

    layout = data.get('layout')
    pages = layout.get('pages') if isinstance(layout, dict) else None

    refs = normalize_image_refs(data.get('images', []))
    return Project(
        directory=project_dir.name,
        path=project_dir,
        title=_text(data, 'title', project_dir.name),
        medium=_text(data, 'medium'),
        year=_text(data, 'year'),
        description=_text(data, 'description'),
        duration=_text(data, 'duration'),
        collective=_text(data, 'collective'),
        curator=_text(data, 'curator'),
        publisher=_text(data, 'publisher'),
        link=_text(data, 'link'),
        image_refs=refs,
        images=resolve_images(refs, project_dir, config.image_border),
        layout=pages if isinstance(pages, list) else None,
    )


def load_projects(input_dir: Path, config: PortfolioConfig) -> List[Project]:
    """Loads every project under the input directory, skipping broken ones."""
    projects = []

    for project_dir in list_project_dirs(input_dir):
        try:
            project = load_project(project_dir, config)
        except Exception as e:
            logger.warning(f"Skipping directory {project_dir.name}: {e}")
            continue

        projects.append(project)
        logger.debug(f"Loaded project: {project.title} ({len(project.images)} images)")

    logger.info(f"Loaded {len(projects)} projects")
    return projects


def check_projects(input_dir: Path) -> Tuple[List[str], List[str]]:
    """
    Reports which project directories have a project.json.

    Returns (with_descriptor, missing_descriptor) directory names.
    """
    present = []
    missing = []
    for project_dir in list_project_dirs(input_dir):
        if (project_dir / PROJECT_FILENAME).is_file():
            present.append(project_dir.name)
        else:
            missing.append(project_dir.name)
    return present, missing
