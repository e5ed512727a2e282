from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any


@dataclass(frozen=True, slots=True)
class Region:
    """
    Axis-aligned rectangle in page-pixel units.

    Every backend geometry (pixel rectangles, normalized polygons) is converted
    into this one shape before it reaches grouping or assembly.
    """

    top_left_x: float
    top_left_y: float
    width: float
    height: float

    def __post_init__(self) -> None:
        if self.width < 0 or self.height < 0:
            raise ValueError("Region width and height must be >= 0")

    def right(self) -> float:
        return self.top_left_x + self.width

    def bottom(self) -> float:
        return self.top_left_y + self.height

    def union(self, other: "Region") -> "Region":
        x0 = min(self.top_left_x, other.top_left_x)
        y0 = min(self.top_left_y, other.top_left_y)
        return Region(
            top_left_x=x0,
            top_left_y=y0,
            width=max(self.right(), other.right()) - x0,
            height=max(self.bottom(), other.bottom()) - y0,
        )

    @staticmethod
    def from_dict(d: dict[str, Any]) -> "Region":
        return Region(
            top_left_x=d["top_left_x"],
            top_left_y=d["top_left_y"],
            width=d["width"],
            height=d["height"],
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "top_left_x": self.top_left_x,
            "top_left_y": self.top_left_y,
            "width": self.width,
            "height": self.height,
        }


@dataclass(frozen=True, slots=True, order=True)
class LineKey:
    """
    Composite (page, line) address of a RawLine. Groups reference lines only
    through this key; page membership is never inferred from list position.
    """

    page_index: int
    line_index: int


class Role(str, Enum):
    QUESTION = "Q"
    RELEVANT = "R"
    IRRELEVANT = "I"

    @staticmethod
    def from_label(label: str) -> "Role":
        """
        Accept the one-letter code or the spelled-out role name (any case).
        """

        s = label.strip().upper()
        for role in Role:
            if s == role.value or s == role.name:
                return role
        raise ValueError(f"Unknown role label: {label!r}")


@dataclass(frozen=True, slots=True)
class RawLine:
    """
    One OCR-detected line, exactly as the backend reported it.
    """

    text: str
    type: str  # e.g. "text", "table", "simple_cell"
    region: Region | None
    page_index: int
    line_index: int  # position within the page
    line: str | int  # backend-specific sub-line id
    column: str | int  # backend-specific column id

    @property
    def key(self) -> LineKey:
        return LineKey(page_index=self.page_index, line_index=self.line_index)

    def to_dict(self) -> dict[str, Any]:
        return {
            "text": self.text,
            "type": self.type,
            "region": None if self.region is None else self.region.to_dict(),
            "page_index": self.page_index,
            "line_index": self.line_index,
            "line": self.line,
            "column": self.column,
        }


@dataclass(frozen=True, slots=True)
class LineGroup:
    """
    A set of RawLines on one page forming one logical statement.

    `member_line_indices` are original (not dense) line indices, strictly
    ascending so that joined member text reads in document order.
    """

    page_index: int
    member_line_indices: tuple[int, ...]
    role: Role

    def __post_init__(self) -> None:
        if not self.member_line_indices:
            raise ValueError("LineGroup must have at least one member")
        for prev, cur in zip(self.member_line_indices, self.member_line_indices[1:]):
            if cur <= prev:
                raise ValueError("LineGroup members must be strictly ascending")

    def member_keys(self) -> list[LineKey]:
        return [LineKey(page_index=self.page_index, line_index=i) for i in self.member_line_indices]


@dataclass(frozen=True, slots=True)
class ContentLine:
    text: str
    type: str
    text_type: Role
    region: Region | None
    line: str | int
    column: str | int

    @staticmethod
    def from_dict(d: dict[str, Any]) -> "ContentLine":
        region_raw = d.get("region")
        return ContentLine(
            text=str(d.get("text", "")),
            type=str(d.get("type", "text")),
            text_type=Role.from_label(str(d["textType"])),
            region=None if region_raw is None else Region.from_dict(region_raw),
            line=d.get("line", ""),
            column=d.get("column", ""),
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "text": self.text,
            "type": self.type,
            "textType": self.text_type.value,
            "region": None if self.region is None else self.region.to_dict(),
            "line": self.line,
            "column": self.column,
        }


@dataclass(frozen=True, slots=True)
class DocumentPage:
    page_index: int  # 0-based page index in the source document
    lines: list[ContentLine]
    page_width: float | None = None
    page_height: float | None = None

    @staticmethod
    def from_dict(d: dict[str, Any], *, default_page_index: int = 0) -> "DocumentPage":
        lines_raw = d.get("lines") or []
        if not isinstance(lines_raw, list):
            raise TypeError("DocumentPage.lines must be a list")
        return DocumentPage(
            page_index=int(d.get("pageIndex", default_page_index)),
            lines=[ContentLine.from_dict(ln) for ln in lines_raw],
            page_width=d.get("pageWidth"),
            page_height=d.get("pageHeight"),
        )

    def to_dict(self) -> dict[str, Any]:
        out: dict[str, Any] = {
            "pageIndex": self.page_index,
            "lines": [ln.to_dict() for ln in self.lines],
        }
        # Dimensions are optional; only emit what the backend reported.
        if self.page_width is not None:
            out["pageWidth"] = self.page_width
        if self.page_height is not None:
            out["pageHeight"] = self.page_height
        return out


@dataclass(frozen=True, slots=True)
class Document:
    """
    Final persisted artifact: pages in source order, each with its content lines.
    """

    pages: list[DocumentPage]

    @staticmethod
    def from_dict(d: dict[str, Any]) -> "Document":
        pages_raw = d.get("page") or []
        if not isinstance(pages_raw, list):
            raise TypeError("Document.page must be a list")
        return Document(
            pages=[DocumentPage.from_dict(p, default_page_index=i) for i, p in enumerate(pages_raw)]
        )

    def to_dict(self) -> dict[str, Any]:
        return {"page": [p.to_dict() for p in self.pages]}
