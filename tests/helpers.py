import json
from pathlib import Path

GEAR_SVG = (
    '<svg xmlns="http://www.w3.org/2000/svg" viewBox="0 0 24 24">'
    '<path fill="#000000" d="M4 4h16v16H4z"/></svg>'
)
VALVE_SVG = (
    '<svg xmlns="http://www.w3.org/2000/svg" viewBox="0 0 24 24">'
    '<polygon points="2,6 12,12 2,18" fill="black"/></svg>'
)

CSS_TEMPLATE = (
    '@font-face { font-family: "{{name}}"; src: url("{{{fontSrc}}}"); }\n'
    '{{#assets}}.{{prefix}}-{{name}}::before { content: "\\{{hex}}"; }\n{{/assets}}'
)
HTML_TEMPLATE = (
    "<h1>{{name}} {{version}}</h1><p>{{description}}</p>"
    '{{#assets}}<i class="{{prefix}}-{{name}}"></i>{{/assets}}'
)


def write_templates(templates_dir: Path):
    templates_dir.mkdir(parents=True, exist_ok=True)
    (templates_dir / "styles.hbs").write_text(CSS_TEMPLATE)
    (templates_dir / "preview.hbs").write_text(HTML_TEMPLATE)
    return {
        "css": templates_dir / "styles.hbs",
        "html": templates_dir / "preview.hbs",
    }


def make_project(root: Path, icons: dict, meta: dict = None):
    """Lay out src/lib, src/templates and meta.json under root."""
    lib = root / "src" / "lib"
    lib.mkdir(parents=True)
    for name, content in icons.items():
        (lib / name).write_text(content)
    write_templates(root / "src" / "templates")
    if meta is not None:
        (root / "meta.json").write_text(json.dumps(meta))
