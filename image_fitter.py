#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
Image fitting and raster preparation.

Computes where an image goes inside a box (contain mode, centered) and
prepares the raster handed to the PDF at the configured resolution.
"""

import logging
from io import BytesIO
from pathlib import Path
from typing import Tuple, Union
from dataclasses import dataclass

from PIL import Image
from reportlab.lib.utils import ImageReader

logger = logging.getLogger(__name__)

PRINT_DPI = 300
PRINT_QUALITY = 95
WEB_QUALITY = 85


@dataclass
class PlacementRect:
    """Rectangle in points, top-left origin."""
    x: float
    y: float
    width: float
    height: float


def fit_image(img_width: float, img_height: float,
              x_box: float, y_box: float, w_box: float, h_box: float) -> PlacementRect:
    """
    Largest rectangle with the image's aspect ratio that fits the box,
    centered on both axes.
    """
    ratio = img_width / img_height

    # Fill the width first, fall back to the height if that overflows
    width = w_box
    height = w_box / ratio
    if height > h_box:
        height = h_box
        width = h_box * ratio

    x = x_box + (w_box - width) / 2
    y = y_box + (h_box - height) / 2

    return PlacementRect(x, y, width, height)


def target_pixel_size(rect: PlacementRect, dpi: int) -> Tuple[int, int]:
    """Pixel size needed to print the rect at the given DPI (72 points per inch)."""
    return round(rect.width * dpi / 72), round(rect.height * dpi / 72)


def needs_resize(img_width: int, target_width: int, dpi: int) -> bool:
    """Resample for web output, or when the source is more than twice the target."""
    return dpi < PRINT_DPI or img_width > target_width * 2


def resize_image(image_path: Path, target: Tuple[int, int], quality: int) -> BytesIO:
    """Downscales to fit inside target (never enlarges) and re-encodes as JPEG."""
    with Image.open(image_path) as img:
        img.thumbnail(target, Image.Resampling.LANCZOS)

        # JPEG has no alpha: flatten onto white
        if img.mode in ('RGBA', 'P', 'LA'):
            img = img.convert('RGBA')
            background = Image.new('RGB', img.size, (255, 255, 255))
            background.paste(img, mask=img.split()[-1])
            img = background
        elif img.mode != 'RGB':
            img = img.convert('RGB')

        buffer = BytesIO()
        img.save(buffer, format='JPEG', quality=quality, optimize=True)
        buffer.seek(0)
        return buffer


def prepare_raster(image_path: Path, img_width: int, rect: PlacementRect, dpi: int) -> Union[str, ImageReader]:
    """
    Returns what the canvas should draw for this placement.

    Either the original file path or an ImageReader over a resized JPEG.
    A failed resize falls back to the original file.
    """
    target = target_pixel_size(rect, dpi)
    if not needs_resize(img_width, target[0], dpi):
        return str(image_path)

    quality = PRINT_QUALITY if dpi >= PRINT_DPI else WEB_QUALITY
    try:
        return ImageReader(resize_image(image_path, target, quality))
    except Exception as e:
        logger.warning(f"Resize failed for {image_path}, using original: {e}")
        return str(image_path)
