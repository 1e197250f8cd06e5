"""
Pytest configuration and shared fixtures for the portfolio generator tests.
"""
import sys
import json
from pathlib import Path
from typing import Dict, Any, Tuple

import pytest
from PIL import Image

# Add project root to path
PROJECT_ROOT = Path(__file__).parent.parent
sys.path.insert(0, str(PROJECT_ROOT))

from project_manager import PortfolioConfig, Project, ImageRecord


# ============================================================================
# Helpers
# ============================================================================

def write_image(path: Path, size: Tuple[int, int], mode: str = 'RGB', color=(120, 90, 60)) -> Path:
    path.parent.mkdir(parents=True, exist_ok=True)
    if mode == 'RGBA':
        color = color + (128,)
    Image.new(mode, size, color).save(path)
    return path


def write_json(path: Path, data: Any) -> Path:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(json.dumps(data), encoding='utf-8')
    return path


def make_record(name: str, width: int, height: int, border: bool = False) -> ImageRecord:
    return ImageRecord(name=name, path=Path(name), width=width, height=height, format='jpeg', border=border)


def make_project(**overrides) -> Project:
    data: Dict[str, Any] = dict(
        directory='work',
        path=Path('work'),
        title='Night Shift',
        medium='Installation',
        year='2021',
        description='A long description of the work. ' * 8,
        link='https://example.com/night-shift',
    )
    data.update(overrides)
    return Project(**data)


# ============================================================================
# Fixtures
# ============================================================================

@pytest.fixture
def config() -> PortfolioConfig:
    """Default config: A4 landscape, 30pt margin, 300 DPI."""
    return PortfolioConfig()


@pytest.fixture
def portfolio_dir(tmp_path: Path) -> Path:
    """A small portfolio: config, one default-layout project, one explicit layout."""
    root = tmp_path / "portfolio"
    write_json(root / "config.json", {
        "title": "Selected Works",
        "subtitle": "2019 - 2024",
        "author": "Jo Example",
        "email": "jo@example.com",
        "website": "example.com",
        "margin": 40,
        "dpi": 300,
        "imageBorder": {"enabled": False, "width": 1, "color": "#333333"},
    })

    alpha = root / "alpha"
    write_image(alpha / "a1.jpg", (1200, 800))
    write_image(alpha / "a2.jpg", (800, 1200))
    write_image(alpha / "a3.png", (600, 600), mode='RGBA')
    write_json(alpha / "project.json", {
        "title": "Alpha",
        "medium": "Photography",
        "year": 2020,
        "description": "First project.",
        "images": ["a1.jpg", {"name": "a2.jpg", "border": True}, "a3.png"],
    })

    beta = root / "beta"
    write_image(beta / "b1.jpg", (3000, 2000))
    write_image(beta / "b2.jpg", (400, 300))
    write_json(beta / "project.json", {
        "title": "Beta",
        "medium": "Video",
        "year": "2022",
        "duration": "12 min",
        "curator": "Sam Curator",
        "description": "Second project.",
        "link": "https://example.com/beta",
        "images": ["b1.jpg", {"file": "b2.jpg"}, "missing.jpg"],
        "layout": {"pages": [
            {"type": "info", "content": ["title", "medium", "year", "description", "b1.jpg"]},
            {"type": "gallery", "content": ["b1.jpg", "b2.jpg", "missing.jpg"]},
            {"type": "full", "content": ["missing.jpg"]},
            {"type": "full", "content": ["b2.jpg"]},
        ]},
    })

    # Not a project: no descriptor
    (root / "notes").mkdir()
    (root / "notes" / "readme.txt").write_text("scratch")

    return root
