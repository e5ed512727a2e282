from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Any, Union

from contracts.document import Region


@dataclass(frozen=True, slots=True)
class PixelRect:
    """
    Backend geometry already in page-pixel units (top-left + size).
    """

    top_left_x: float
    top_left_y: float
    width: float
    height: float

    @staticmethod
    def from_dict(d: Any) -> "PixelRect | None":
        if not isinstance(d, dict):
            return None
        try:
            return PixelRect(
                top_left_x=float(d["top_left_x"]),
                top_left_y=float(d["top_left_y"]),
                width=float(d["width"]),
                height=float(d["height"]),
            )
        except (KeyError, TypeError, ValueError):
            # Malformed geometry is treated as absent (no guessing).
            return None


@dataclass(frozen=True, slots=True)
class NormalizedPolygon:
    """
    Backend geometry as polygon vertices in [0, 1] fractions of the page.
    """

    vertices: tuple[tuple[float, float], ...]

    @staticmethod
    def from_list(raw: Any) -> "NormalizedPolygon | None":
        if not isinstance(raw, list):
            return None
        vertices: list[tuple[float, float]] = []
        for v in raw:
            if not isinstance(v, dict):
                return None
            try:
                # Protobuf JSON omits zero-valued coordinates.
                vertices.append((float(v.get("x", 0.0)), float(v.get("y", 0.0))))
            except (TypeError, ValueError):
                return None
        return NormalizedPolygon(vertices=tuple(vertices))


RegionSource = Union[PixelRect, NormalizedPolygon]


def round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


def _as_number(v: float) -> int | float:
    return int(v) if float(v).is_integer() else v


def region_from_pixel_rect(rect: PixelRect | None) -> Region | None:
    if rect is None:
        return None
    if rect.width < 0 or rect.height < 0:
        return None
    return Region(
        top_left_x=_as_number(rect.top_left_x),
        top_left_y=_as_number(rect.top_left_y),
        width=_as_number(rect.width),
        height=_as_number(rect.height),
    )


def region_from_normalized_vertices(
    polygon: NormalizedPolygon | None,
    *,
    page_width_px: float | None,
    page_height_px: float | None,
) -> Region | None:
    """
    Scale normalized vertices by the page pixel size.

    The enclosing rectangle is taken from min/max over all vertices rather than
    trusting vertex positions 0 and 2 to be top-left and bottom-right; for the
    usual TL,TR,BR,BL ordering both give the same result.

    Fewer than 3 vertices, or unknown page dimensions, yield None.
    """

    if polygon is None or len(polygon.vertices) < 3:
        return None
    if page_width_px is None or page_height_px is None:
        return None

    xs = [x for x, _ in polygon.vertices]
    ys = [y for _, y in polygon.vertices]
    min_x, max_x = min(xs), max(xs)
    min_y, max_y = min(ys), max(ys)

    return Region(
        top_left_x=round_half_up(min_x * page_width_px),
        top_left_y=round_half_up(min_y * page_height_px),
        width=round_half_up((max_x - min_x) * page_width_px),
        height=round_half_up((max_y - min_y) * page_height_px),
    )


def normalize_region(
    source: RegionSource | None,
    *,
    page_width_px: float | None = None,
    page_height_px: float | None = None,
) -> Region | None:
    """
    Single entry point converting any backend geometry into a canonical Region.
    """

    if source is None:
        return None
    if isinstance(source, PixelRect):
        return region_from_pixel_rect(source)
    if isinstance(source, NormalizedPolygon):
        return region_from_normalized_vertices(
            source, page_width_px=page_width_px, page_height_px=page_height_px
        )
    raise TypeError(f"Unsupported region source: {type(source).__name__}")
