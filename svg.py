import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, Tuple

from lxml import etree

SVG_NS = "http://www.w3.org/2000/svg"


@dataclass(frozen=True)
class OptimizeConfig:
    """Which rewrites optimize_svg applies, in order."""

    # Attribute names stripped from every element.
    remove_attrs: Tuple[str, ...] = ("fill",)
    # Attributes set on the root <svg> element unless already present.
    add_attributes: Dict[str, str] = field(
        default_factory=lambda: {"fill": "currentColor"}
    )


DEFAULT_CONFIG = OptimizeConfig()


def optimize_svg(text: str, config: OptimizeConfig = DEFAULT_CONFIG) -> str:
    parser = etree.XMLParser(resolve_entities=False, no_network=True)
    root = etree.fromstring(text.strip().encode("utf-8"), parser)
    if not isinstance(root.tag, str) or etree.QName(root).localname != "svg":
        raise ValueError(f"Expected an <svg> root element, got {root.tag!r}")

    if config.remove_attrs:
        for elem in root.iter(etree.Element):
            for attr_name in config.remove_attrs:
                elem.attrib.pop(attr_name, None)

    for name, value in config.add_attributes.items():
        if root.get(name) is None:
            root.set(name, value)

    return etree.tostring(root, encoding="unicode").strip()


def optimize_svg_file(
    path: Path, output: Path, config: OptimizeConfig = DEFAULT_CONFIG
) -> bool:
    """Optimize one icon into output. Failures are logged, not raised."""
    try:
        optimized = optimize_svg(Path(path).read_text(encoding="utf-8"), config)
        Path(output).write_text(optimized, encoding="utf-8")
    except (OSError, ValueError, etree.XMLSyntaxError) as e:
        logging.error(f"Could not optimize the SVG file {path}: {e}")
        return False
    return True
