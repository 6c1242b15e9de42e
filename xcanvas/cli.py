"""
Command Line Renderer
=====================

Renders a JSON or YAML render document to a PNG file::

    python -m xcanvas render card.yaml -o card.png --width 600 --height 315
"""

from pathlib import Path
from typing import List, Optional
import argparse
import asyncio
import sys

from xcanvas.config.logging import get_logger
from xcanvas.config.settings import get_settings
from xcanvas.core.dsl.parser import DocumentParserFactory, parse_document
from xcanvas.core.engine import Engine
from xcanvas.core.loading.fetcher import ImageFetcher
from xcanvas.core.rendering.surface import RasterSurface
from xcanvas.models.schemas import Options

logger = get_logger(__name__)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="xcanvas", description="Render layout documents to PNG")
    subparsers = parser.add_subparsers(dest="command", required=True)

    render = subparsers.add_parser("render", help="Render a document to a PNG file")
    render.add_argument("document", help="JSON or YAML render document")
    render.add_argument("-o", "--output", required=True, help="Output PNG file")
    render.add_argument("--width", type=int, help="Canvas width, overrides the document")
    render.add_argument("--height", type=int, help="Canvas height, overrides the document")
    render.add_argument("--font-size", type=float, help="Base font size, overrides the document")
    render.add_argument("--format", choices=["json", "yaml"], help="Document format (default: detect)")
    return parser


async def render_document(
    document: Path,
    output: Path,
    width: Optional[int] = None,
    height: Optional[int] = None,
    font_size: Optional[float] = None,
    parser_type: Optional[str] = None,
) -> List[str]:
    """
    Render one document file to a PNG file.

    Args:
        document: Path of the JSON/YAML document
        output: Path of the PNG to write
        width: Canvas width override
        height: Canvas height override
        font_size: Base font size override
        parser_type: Document format, detected when None

    Returns:
        Parse errors; empty when the PNG was written
    """
    content = document.read_text(encoding="utf-8")
    result = await parse_document(
        content, parser_type or DocumentParserFactory.parser_type_for_path(str(document))
    )
    for warning in result.warnings:
        logger.warning("Document warning", document=str(document), warning=warning)
    if not result.success or result.request is None:
        return result.errors

    request = result.request
    options = request.options or Options()
    overrides = {
        "canvas_width": width or options.canvas_width,
        "canvas_height": height or options.canvas_height,
        "font_size": font_size or options.font_size,
    }
    options = options.model_copy(update=overrides)

    settings = get_settings()
    surface = RasterSurface(
        options.canvas_width or settings.default_canvas_width,
        options.canvas_height or settings.default_canvas_height,
    )
    root = settings.resource_root if settings.resource_root != Path(".") else document.parent
    engine = Engine(surface, options, fetcher=ImageFetcher(root=root))
    try:
        engine.render(request.root)
        await engine.settle()
    finally:
        await engine.close()

    output.parent.mkdir(parents=True, exist_ok=True)
    surface.save(output)
    logger.info("Document rendered", document=str(document), output=str(output), size=surface.image.size)
    return []


def main(argv: Optional[List[str]] = None) -> int:
    """Main entry point for the command line renderer."""
    args = build_parser().parse_args(argv)

    document = Path(args.document)
    if not document.is_file():
        print(f"Document does not exist: {document}", file=sys.stderr)
        return 1

    errors = asyncio.run(
        render_document(
            document,
            Path(args.output),
            width=args.width,
            height=args.height,
            font_size=args.font_size,
            parser_type=args.format,
        )
    )
    if errors:
        for error in errors:
            print(f"error: {error}", file=sys.stderr)
        return 1
    print(f"Wrote {args.output}")
    return 0
