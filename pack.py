"""Pack the optimized icons into a single SVG symbol sprite (dist/industricon.svg)."""

import copy
import logging
import re
from dataclasses import dataclass, field
from pathlib import Path
from typing import Iterable, List, Optional

from lxml import etree

from utils import SpriteError

SVG_NS = "http://www.w3.org/2000/svg"
XLINK_NS = "http://www.w3.org/1999/xlink"
XLINK_HREF = f"{{{XLINK_NS}}}href"

# Root attributes that only make sense on a standalone document.
DROPPED_ROOT_ATTRS = {"width", "height", "x", "y", "version", "id"}
URL_REF_RE = re.compile(r"url\(\s*#([^)\s]+)\s*\)")
WHITESPACE_RE = re.compile(r"\s+")


@dataclass
class SpriteResult:
    path: Path
    document: Optional[etree._Element] = None
    symbol_ids: List[str] = field(default_factory=list)
    errors: List[str] = field(default_factory=list)

    @property
    def contents(self) -> str:
        if self.document is None:
            raise SpriteError("The sprite was not compiled")
        return etree.tostring(
            self.document, xml_declaration=True, encoding="UTF-8"
        ).decode("utf-8")


def get_symbol_id(path: Path) -> str:
    return WHITESPACE_RE.sub("_", Path(path).stem)


def _namespace_ids(symbol, symbol_id: str):
    """Prefix internal ids with the symbol id so icons cannot clash."""
    renamed = {}
    # The <symbol> already carries its public id.
    for elem in symbol.iterdescendants(etree.Element):
        old = elem.get("id")
        if old:
            renamed[old] = f"{symbol_id}-{old}"
            elem.set("id", renamed[old])
    if not renamed:
        return

    def _sub(m):
        return f"url(#{renamed.get(m.group(1), m.group(1))})"

    for elem in symbol.iter(etree.Element):
        for attr_name, value in elem.attrib.items():
            if attr_name in (XLINK_HREF, "href") and value.startswith("#"):
                elem.set(attr_name, "#" + renamed.get(value[1:], value[1:]))
            elif "url(" in value:
                elem.set(attr_name, URL_REF_RE.sub(_sub, value))


def _make_symbol(svg_path: Path, symbol_id: str):
    root = etree.fromstring(svg_path.read_bytes())
    if etree.QName(root).localname != "svg":
        raise SpriteError(f"{svg_path.name}: unexpected root element {root.tag}")

    symbol = etree.Element(f"{{{SVG_NS}}}symbol", nsmap={None: SVG_NS})
    for attr_name, value in root.attrib.items():
        if "}" in attr_name or attr_name in DROPPED_ROOT_ATTRS:
            continue
        symbol.set(attr_name, value)
    symbol.set("id", symbol_id)

    for child in root:
        if not isinstance(child.tag, str):
            continue
        child = copy.deepcopy(child)
        if etree.QName(child).namespace is None:
            # Icons without an xmlns still belong in the SVG namespace.
            for elem in child.iter(etree.Element):
                elem.tag = f"{{{SVG_NS}}}{etree.QName(elem).localname}"
        symbol.append(child)

    _namespace_ids(symbol, symbol_id)
    return symbol


def compile_sprite(svg_paths: Iterable[Path], dest: Path) -> SpriteResult:
    """Build the sprite document. Icons that fail to parse are recorded and skipped."""
    result = SpriteResult(path=Path(dest))
    sprite = etree.Element(f"{{{SVG_NS}}}svg", nsmap={None: SVG_NS, "xlink": XLINK_NS})

    for svg_path in svg_paths:
        svg_path = Path(svg_path)
        symbol_id = get_symbol_id(svg_path)
        if symbol_id in result.symbol_ids:
            result.errors.append(f"{svg_path.name}: duplicate symbol id {symbol_id}")
            continue
        try:
            symbol = _make_symbol(svg_path, symbol_id)
        except (OSError, etree.XMLSyntaxError, SpriteError) as e:
            result.errors.append(f"{svg_path.name}: {e}")
            continue
        sprite.append(symbol)
        result.symbol_ids.append(symbol_id)

    etree.cleanup_namespaces(sprite, top_nsmap={None: SVG_NS, "xlink": XLINK_NS})
    result.document = sprite
    return result


def write_sprite(result: SpriteResult) -> bool:
    if result.errors:
        logging.error(
            "SVG sprite compilation process was not successful: "
            + "; ".join(result.errors)
        )

    if result.document is None:
        return False

    try:
        result.path.parent.mkdir(parents=True, exist_ok=True)
        result.path.write_text(result.contents, encoding="utf-8")
    except OSError as e:
        logging.error(f"Could not create the file containing inline sprites: {e}")
        return False

    logging.info(f"Wrote {len(result.symbol_ids)} symbols to {result.path}")
    return True
