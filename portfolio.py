#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
PDF Portfolio Generator

Builds a multi-page PDF portfolio from a folder of projects.

STRUCTURE:
    portfolio/
        config.json          title, author, page size, margins, DPI, fonts, borders
        project-a/
            project.json     title, medium, year, description, images, layout
            image1.jpg
            ...
        project-b/
            ...

Each project becomes a run of pages: by default an info page followed by
two images per page, or exactly the pages listed in its `layout`.

USAGE:
    python portfolio.py -i <portfolio_dir> -o <output.pdf>

Examples:
    python portfolio.py -i ./projects -o portfolio.pdf
    python portfolio.py -i ./projects -o portfolio.pdf --print-and-web
    python portfolio.py -i ./projects --check

DEPENDENCIES:
    pip install reportlab pillow numpy
"""

import sys
import logging
import argparse
import traceback
from dataclasses import replace
from pathlib import Path
from typing import List, Optional

from pdf_renderer import PDFRenderer
from project_manager import (
    CONFIG_FILENAME, PortfolioConfig, Project,
    load_config, load_projects, check_projects,
)

logger = logging.getLogger(__name__)

PRINT_DPI = 300
WEB_DPI = 150


class PortfolioGenerator:
    """Loads config and projects from the input folder and renders the PDF."""

    def __init__(self, input_dir: Path, output_file: Optional[Path] = None,
                 config_file: str = CONFIG_FILENAME, dpi: Optional[int] = None):
        self.input_dir = Path(input_dir)
        self.output_file = Path(output_file) if output_file else None
        self.config_file = config_file
        self.dpi = dpi

        self.config: Optional[PortfolioConfig] = None
        self.projects: List[Project] = []
        self.page_count = 0

    def load(self):
        """Reads config.json and every project.json (never fatal)."""
        self.config = load_config(self.input_dir, self.config_file)
        if self.dpi:
            self.config = replace(self.config, dpi=self.dpi)
        if self.output_file is None:
            self.output_file = Path(self.config.output)
        self.projects = load_projects(self.input_dir, self.config)

    def generate(self) -> bool:
        """
        Generates the portfolio.

        Returns True if successful, False if the PDF could not be written.
        """
        if self.config is None:
            self.load()

        logger.info(f"Writing {self.output_file} ({len(self.projects)} projects, {self.config.dpi} DPI)")
        renderer = PDFRenderer(self.config, self.output_file)
        if not renderer.render(self.projects):
            return False

        self.page_count = renderer.page_count
        return True


# ============================================================================
# COMMAND LINE
# ============================================================================

def versioned_path(output: Path, suffix: str) -> Path:
    """portfolio.pdf -> portfolio-print.pdf"""
    return output.with_name(f"{output.stem}-{suffix}{output.suffix}")


def ensure_pdf_suffix(output: Optional[Path]) -> Optional[Path]:
    if output is not None and output.suffix.lower() != '.pdf':
        return output.with_suffix('.pdf')
    return output


def run_check(input_dir: Path) -> int:
    """Lists project folders with and without project.json."""
    present, missing = check_projects(input_dir)

    for name in missing:
        print(f"✗ Missing project.json: {name}")
    for name in present:
        print(f"✓ Has project.json: {name}")

    print("\nSummary:")
    print(f"  Total project directories: {len(present) + len(missing)}")
    print(f"  With project.json: {len(present)}")
    print(f"  Missing project.json: {len(missing)}")
    return 0


def run_generation(input_dir: Path, output: Optional[Path], config_file: str, dpi: Optional[int]) -> bool:
    generator = PortfolioGenerator(input_dir, output, config_file, dpi)
    if not generator.generate():
        return False

    print("\n✓ Portfolio generated successfully!")
    print(f"  Projects: {len(generator.projects)}")
    print(f"  Pages: {generator.page_count}")
    print(f"  Output: {generator.output_file.absolute()}")
    return True


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="portfolio-generator",
        description="Generate a PDF portfolio from a directory of projects.",
    )
    parser.add_argument("-i", "--input", default=".",
                        help="Portfolio directory (default: current directory)")
    parser.add_argument("-o", "--output", default=None,
                        help="Output PDF file (default: 'output' from config, else portfolio.pdf)")
    parser.add_argument("-c", "--config", default=CONFIG_FILENAME,
                        help=f"Config file inside the input directory (default: {CONFIG_FILENAME})")
    parser.add_argument("--dpi", type=int, default=None,
                        help="Override the configured image resolution")
    parser.add_argument("--print-and-web", action="store_true",
                        help=f"Write a {PRINT_DPI} DPI print version and a {WEB_DPI} DPI web version")
    parser.add_argument("--check", action="store_true",
                        help="Only report which project folders have a project.json")
    parser.add_argument("--debug", action="store_true",
                        help="Verbose logging")
    return parser


def main(argv: Optional[List[str]] = None) -> int:
    """Entry point. Returns the process exit code."""
    args = build_parser().parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.debug else logging.INFO,
        format="%(levelname)s: %(message)s",
    )

    input_dir = Path(args.input).resolve()
    if not input_dir.is_dir():
        print(f"ERROR: Input directory not found: {input_dir}", file=sys.stderr)
        return 1

    if args.check:
        return run_check(input_dir)

    output = ensure_pdf_suffix(Path(args.output) if args.output else None)

    print("Starting PDF Portfolio Generator...")
    print(f"  Input directory: {input_dir}")

    try:
        if args.print_and_web:
            base = output or Path(load_config(input_dir, args.config).output)
            ok = (run_generation(input_dir, versioned_path(base, 'print'), args.config, PRINT_DPI)
                  and run_generation(input_dir, versioned_path(base, 'web'), args.config, WEB_DPI))
        else:
            ok = run_generation(input_dir, output, args.config, args.dpi)
    except Exception as e:
        print(f"ERROR: Error generating portfolio: {e}", file=sys.stderr)
        if args.debug:
            traceback.print_exc()
        return 1

    if not ok:
        print("ERROR: The portfolio could not be written.", file=sys.stderr)
        return 1

    return 0


if __name__ == "__main__":
    sys.exit(main())
