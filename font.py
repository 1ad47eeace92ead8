"""Compile the optimized icon set into an icon font plus CSS/HTML previews.

Glyph outlines come straight from the SVG shapes via fontTools' svgLib. Each
icon's viewBox is mapped onto the em box (y flipped, top of the viewBox on the
ascender), cubic curves are converted to quadratics for the glyf table, and
glyphs are addressed by the codepoints assigned in the mapping.
"""

import hashlib
import logging
import re
from concurrent.futures import Executor, Future
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, List, Mapping, Optional, Tuple

import chevron
from fontTools.fontBuilder import FontBuilder
from fontTools.misc.transform import Transform
from fontTools.pens.cu2quPen import Cu2QuPen
from fontTools.pens.ttGlyphPen import TTGlyphPen
from fontTools.svgLib import SVGPath
from lxml import etree

from meta import ProjectMetadata
from utils import FontGenerationError, get_dir_contents

FONT_NAME = "industricon"

VERSION_RE = re.compile(r"^\s*v?(\d+)(?:\.(\d+))?")
GLYPH_NAME_RE = re.compile(r"[^A-Za-z0-9._-]")
LENGTH_RE = re.compile(r"^\s*([\d.]+)\s*(px)?\s*$")

VERSION_FORMATS = ("full", "major_minor")
FONT_TYPES = ("ttf", "woff")
ASSET_TYPES = ("css", "html")


@dataclass(frozen=True)
class FontConfig:
    name: str = FONT_NAME
    prefix: str = FONT_NAME
    font_types: Tuple[str, ...] = ("ttf",)
    asset_types: Tuple[str, ...] = ASSET_TYPES
    # "full" embeds the version verbatim, "major_minor" keeps only X.Y.
    version_format: str = "full"
    # Scale every glyph to the full em height rather than sharing one scale.
    normalize: bool = True
    units_per_em: int = 1000
    descent: int = 0
    templates: Dict[str, Path] = field(default_factory=dict)

    def __post_init__(self):
        if self.version_format not in VERSION_FORMATS:
            raise ValueError(f"Unknown version format: {self.version_format}")
        if "ttf" not in self.font_types:
            raise ValueError("The ttf font type is required")
        for t in self.font_types:
            if t not in FONT_TYPES:
                raise ValueError(f"Unsupported font type: {t}")
        for t in self.asset_types:
            if t not in ASSET_TYPES:
                raise ValueError(f"Unsupported asset type: {t}")
            if t not in self.templates:
                raise ValueError(f"No template configured for the {t} asset")
        if self.descent > 0:
            raise ValueError("descent must be zero or negative")

    @property
    def ascent(self) -> int:
        return self.units_per_em + self.descent


@dataclass(frozen=True)
class FontResult:
    ok: bool
    outputs: Tuple[Path, ...] = ()
    error: Optional[Exception] = None


@dataclass
class _Icon:
    name: str
    glyph_name: str
    codepoint: int
    svg: bytes
    view_box: Tuple[float, float, float, float]


def format_version(version: str, version_format: str = "full") -> str:
    if version_format == "full":
        return version
    if version_format == "major_minor":
        m = VERSION_RE.match(version)
        if not m:
            raise ValueError(f"Cannot parse version {version!r}")
        return f"{m.group(1)}.{m.group(2) or 0}"
    raise ValueError(f"Unknown version format: {version_format}")


def font_revision(version: str) -> float:
    """head.fontRevision is a fixed-point number, so only major.minor fit."""
    m = VERSION_RE.match(version)
    if not m:
        return 1.0
    return float(f"{m.group(1)}.{m.group(2) or 0}")


def _parse_length(value: Optional[str]) -> Optional[float]:
    if value is None:
        return None
    m = LENGTH_RE.match(value)
    return float(m.group(1)) if m else None


def _read_icon(path: Path, name: str, glyph_name: str, codepoint: int) -> _Icon:
    root = etree.fromstring(path.read_bytes())
    # svgLib walks every node and cannot handle comments or PIs.
    for node in root.xpath("//comment() | //processing-instruction()"):
        parent = node.getparent()
        if parent is not None:
            parent.remove(node)

    view_box = root.get("viewBox")
    if view_box:
        parts = view_box.replace(",", " ").split()
        if len(parts) != 4:
            raise FontGenerationError(f"{path}: malformed viewBox {view_box!r}")
        box = tuple(float(p) for p in parts)
    else:
        width = _parse_length(root.get("width"))
        height = _parse_length(root.get("height"))
        if not (width and height):
            raise FontGenerationError(f"{path}: neither viewBox nor size attributes found")
        box = (0.0, 0.0, width, height)

    if box[2] <= 0 or box[3] <= 0:
        raise FontGenerationError(f"{path}: empty viewBox {view_box!r}")

    return _Icon(name, glyph_name, codepoint, etree.tostring(root), box)


def _glyph_name(name: str, taken: set) -> str:
    base = GLYPH_NAME_RE.sub("_", name) or "glyph"
    if base[0].isdigit() or base[0] == ".":
        base = f"g{base}"
    candidate = base
    i = 1
    while candidate in taken:
        candidate = f"{base}.{i}"
        i += 1
    taken.add(candidate)
    return candidate


def _draw_glyph(icon: _Icon, scale: float, ascent: int):
    min_x, min_y, _, _ = icon.view_box
    transform = Transform(scale, 0, 0, -scale, -min_x * scale, ascent + min_y * scale)
    tt_pen = TTGlyphPen(None)
    # The y flip reverses winding; TrueType wants clockwise outer contours.
    pen = Cu2QuPen(tt_pen, max_err=1.0, reverse_direction=True)
    SVGPath.fromstring(icon.svg, transform=transform).draw(pen)
    return tt_pen.glyph()


def _collect_icons(input_dir: Path, codepoints: Mapping[str, int]) -> List[_Icon]:
    icons = []
    taken = {".notdef"}
    for icon in get_dir_contents(input_dir):
        if icon.base_name not in codepoints:
            logging.warning(f"No codepoint assigned to {icon.file_name}, skipping.")
            continue
        glyph_name = _glyph_name(icon.base_name, taken)
        icons.append(
            _read_icon(icon.path, icon.base_name, glyph_name, codepoints[icon.base_name])
        )
    icons.sort(key=lambda i: i.codepoint)
    return icons


def build_font(
    icons: List[_Icon], metadata: ProjectMetadata, config: FontConfig
) -> FontBuilder:
    upm = config.units_per_em
    version = format_version(metadata.font_version, config.version_format)

    fb = FontBuilder(upm, isTTF=True)
    glyph_order = [".notdef"] + [i.glyph_name for i in icons]
    fb.setupGlyphOrder(glyph_order)
    fb.setupCharacterMap({i.codepoint: i.glyph_name for i in icons})

    shared_scale = None
    if not config.normalize and icons:
        shared_scale = upm / max(i.view_box[3] for i in icons)

    glyphs = {".notdef": TTGlyphPen(None).glyph()}
    advances = {".notdef": upm}
    for icon in icons:
        scale = shared_scale or upm / icon.view_box[3]
        glyphs[icon.glyph_name] = _draw_glyph(icon, scale, config.ascent)
        advances[icon.glyph_name] = max(1, round(icon.view_box[2] * scale))
    fb.setupGlyf(glyphs)

    glyph_table = fb.font["glyf"]
    fb.setupHorizontalMetrics(
        {name: (adv, getattr(glyph_table[name], "xMin", 0)) for name, adv in advances.items()}
    )
    fb.setupHorizontalHeader(ascent=config.ascent, descent=config.descent)
    names = {
        "familyName": config.name,
        "styleName": "Regular",
        "uniqueFontIdentifier": f"{config.name} {version}",
        "fullName": config.name,
        "psName": GLYPH_NAME_RE.sub("", config.name) or "icons",
        "version": f"Version {version}",
    }
    if metadata.font_description:
        names["description"] = metadata.font_description
    fb.setupNameTable(names)
    fb.setupOS2(
        sTypoAscender=config.ascent,
        sTypoDescender=config.descent,
        sTypoLineGap=0,
        usWinAscent=config.ascent,
        usWinDescent=abs(config.descent),
    )
    fb.setupPost()
    fb.font["head"].fontRevision = font_revision(version)
    return fb


def _template_context(
    icons: List[_Icon], metadata: ProjectMetadata, config: FontConfig, font_hash: str
) -> dict:
    return {
        "name": config.name,
        "prefix": config.prefix,
        "version": format_version(metadata.font_version, config.version_format),
        "description": metadata.font_description,
        "fontSrc": f"./{config.name}.ttf?{font_hash}",
        "assets": [
            {
                "name": i.name,
                "codepoint": i.codepoint,
                "hex": f"{i.codepoint:x}",
                "char": chr(i.codepoint),
            }
            for i in icons
        ],
    }


def generate_fonts(
    input_dir: Path,
    output_dir: Path,
    codepoints: Mapping[str, int],
    metadata: ProjectMetadata,
    config: FontConfig,
) -> FontResult:
    """Write <name>.ttf (and the configured extra fonts and assets) to output_dir.

    Never raises: failures are logged and reported through FontResult.
    """
    outputs: List[Path] = []
    try:
        icons = _collect_icons(Path(input_dir), codepoints)
        fb = build_font(icons, metadata, config)

        output_dir = Path(output_dir)
        ttf_path = output_dir / f"{config.name}.ttf"
        fb.save(str(ttf_path))
        outputs.append(ttf_path)

        if "woff" in config.font_types:
            woff_path = output_dir / f"{config.name}.woff"
            fb.font.flavor = "woff"
            fb.font.save(str(woff_path))
            fb.font.flavor = None
            outputs.append(woff_path)

        font_hash = hashlib.md5(ttf_path.read_bytes()).hexdigest()
        context = _template_context(icons, metadata, config, font_hash)
        for asset in config.asset_types:
            template = Path(config.templates[asset]).read_text(encoding="utf-8")
            asset_path = output_dir / f"{config.name}.{asset}"
            asset_path.write_text(chevron.render(template, context), encoding="utf-8")
            outputs.append(asset_path)
    except Exception as e:
        logging.error(
            f"Could not generate the font assets and related assets for the SVG files: {e}"
        )
        return FontResult(ok=False, outputs=tuple(outputs), error=e)

    logging.info(f"Wrote {len(icons)} glyphs to {ttf_path}")
    return FontResult(ok=True, outputs=tuple(outputs))


def start_font_generation(executor: Executor, *args, **kwargs) -> "Future[FontResult]":
    """Run generate_fonts in the background; the caller decides when to join."""
    return executor.submit(generate_fonts, *args, **kwargs)
