#!python3
import argparse
import json
import logging
import shutil
import sys
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
from pathlib import Path
from typing import Dict, Iterable, List, Optional

from tqdm import tqdm

from font import FONT_NAME, FontConfig, start_font_generation
from meta import load_project_metadata
from pack import compile_sprite, write_sprite
from svg import DEFAULT_CONFIG, OptimizeConfig, optimize_svg_file
from utils import DirContents, MetadataError, get_dir_contents, setup_logging

# Start of the glyph range, inside the Unicode Private Use Area.
ICON_CODEPOINT_START = 60000


@dataclass(frozen=True)
class Paths:
    root: Path

    @property
    def src(self) -> Path:
        return self.root / "src"

    @property
    def dist(self) -> Path:
        return self.root / "dist"

    @property
    def icons_src(self) -> Path:
        return self.src / "lib"

    @property
    def dist_lib(self) -> Path:
        return self.dist / "lib"

    @property
    def templates(self) -> Path:
        return self.src / "templates"

    @property
    def mapping(self) -> Path:
        return self.src / "mapping.json"

    @property
    def meta(self) -> Path:
        return self.root / "meta.json"

    @property
    def sprite(self) -> Path:
        return self.dist / f"{FONT_NAME}.svg"


def assign_codepoints(
    names: Iterable[str], start: int = ICON_CODEPOINT_START
) -> Dict[str, int]:
    """Give each name the next codepoint, in the order given."""
    mapping: Dict[str, int] = {}
    for codepoint, name in enumerate(names, start):
        if name in mapping:
            raise ValueError(f"Icon {name} is defined more than once.")
        mapping[name] = codepoint
    return mapping


def write_mapping(mapping: Dict[str, int], path: Path):
    Path(path).write_text(json.dumps(mapping, indent=2), encoding="utf-8")


def recreate_dist(paths: Paths):
    if paths.dist.exists():
        shutil.rmtree(paths.dist)
    paths.dist_lib.mkdir(parents=True)


def optimize_icons(
    icons: DirContents, output_dir: Path, config: OptimizeConfig = DEFAULT_CONFIG
) -> List[Path]:
    written = []
    for icon in tqdm(icons, total=len(icons), desc="Optimizing SVGs", unit=" files"):
        output = output_dir / icon.file_name
        if optimize_svg_file(icon.path, output, config):
            written.append(output)

    skipped = len(icons) - len(written)
    if skipped:
        logging.warning(f"Skipped {skipped} icons that could not be optimized.")
    return written


def default_font_config(paths: Paths, **overrides) -> FontConfig:
    templates = {
        "html": paths.templates / "preview.hbs",
        "css": paths.templates / "styles.hbs",
    }
    return FontConfig(templates=templates, **overrides)


def run(
    paths: Paths,
    font_config: Optional[FontConfig] = None,
    optimize_config: OptimizeConfig = DEFAULT_CONFIG,
) -> int:
    icons = get_dir_contents(paths.icons_src)
    try:
        mapping = assign_codepoints(icons.base_file_names)
    except ValueError as e:
        logging.error(f"Could not assign codepoints: {e}")
        return 1

    try:
        recreate_dist(paths)
        write_mapping(mapping, paths.mapping)
    except OSError as e:
        logging.error(f"Could not prepare the output directories: {e}")
        return 1

    optimize_icons(icons, paths.dist_lib, optimize_config)

    try:
        metadata = load_project_metadata(paths.meta)
    except MetadataError as e:
        logging.error(str(e))
        return 1

    font_config = font_config or default_font_config(paths)

    with ThreadPoolExecutor(max_workers=1) as executor:
        font_future = start_font_generation(
            executor, paths.dist_lib, paths.dist, mapping, metadata, font_config
        )

        optimized = get_dir_contents(paths.dist_lib)
        write_sprite(compile_sprite(optimized.file_paths, paths.sprite))

        font_result = font_future.result()

    if not font_result.ok:
        logging.warning("Finished without font assets.")
    logging.info(f"Icons processed: {len(mapping)}")
    return 0


def main(argv=None) -> int:
    parser = argparse.ArgumentParser(
        description="Build the icon font, sprite and optimized SVGs from src/lib."
    )
    parser.add_argument(
        "--root",
        type=Path,
        default=Path.cwd(),
        help="Project root containing meta.json and src/ (default: current directory)",
    )
    parser.add_argument(
        "--debug",
        action="store_true",
        help="Enable debug logging",
    )
    args = parser.parse_args(argv)

    setup_logging()
    if args.debug:
        logging.getLogger().setLevel(logging.DEBUG)

    return run(Paths(args.root.resolve()))


if __name__ == "__main__":
    sys.exit(main())
