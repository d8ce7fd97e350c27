import argparse
import sys
from pathlib import Path
from typing import List, Optional

from keepnote.config import get_settings
from keepnote.errors import StoreError
from keepnote.formatting import apply_format, render_content
from keepnote.log import configure_logging
from keepnote.models import InlineFormat, Selection
from keepnote.search import filter_notes
from keepnote.store import JsonFileNoteStore


def _read_text(path: Path) -> str:
    if not path.exists():
        print(f"❌ Error: File {path} not found.", file=sys.stderr)
        sys.exit(1)
    with open(path, "r", encoding="utf-8") as f:
        return f.read()


def handle_render(args) -> None:
    content = _read_text(args.file)
    html = render_content(content, args.query or "")

    if args.output:
        with open(args.output, "w", encoding="utf-8") as f:
            f.write(html)
        print(f"✅ Saved to: {args.output}")
    else:
        print(html)


def handle_format(args) -> None:
    content = _read_text(args.file)

    try:
        selection = Selection(start=args.start, end=args.end)
    except ValueError as e:
        print(f"❌ Error: invalid selection: {e}", file=sys.stderr)
        sys.exit(1)

    result = apply_format(content, selection, args.format)
    if not result.applied:
        print(f"⚠️  {result.message}", file=sys.stderr)
        sys.exit(2)

    with open(args.file, "w", encoding="utf-8") as f:
        f.write(result.content)

    flags = result.formats
    active = [name for name in ("bold", "italic", "underline") if getattr(flags, name)]
    print(f"✏️  Selection is now {result.selection.start}-{result.selection.end}: {', '.join(active) or 'plain'}")


def handle_search(args) -> None:
    settings = get_settings()
    store_path = args.store or settings.store.path
    try:
        store = JsonFileNoteStore(store_path)
    except StoreError as e:
        print(f"❌ Error: {e}", file=sys.stderr)
        sys.exit(1)

    notes = filter_notes(store.list(args.user or settings.default_user), args.query)
    print(f"🔍 Found {len(notes)} notes.")
    for note in notes:
        print(f"- [{note.id}] {note.title or '(untitled)'}")


def handle_serve(args) -> None:
    from keepnote.server import run

    run()


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="keepnote", description="KeepNote: note formatting and search tools")
    subparsers = parser.add_subparsers(dest="command", required=True)

    p_render = subparsers.add_parser("render", help="Render a marked-up content file to HTML")
    p_render.add_argument("file", type=Path, help="Path to the content file")
    p_render.add_argument("-q", "--query", help="Search query to highlight")
    p_render.add_argument("-o", "--output", type=Path, help="Write HTML here instead of stdout")
    p_render.set_defaults(func=handle_render)

    p_format = subparsers.add_parser("format", help="Toggle an inline format on part of a content file")
    p_format.add_argument("file", type=Path, help="Path to the content file (rewritten in place)")
    p_format.add_argument("start", type=int, help="Selection start, in UTF-16 code units")
    p_format.add_argument("end", type=int, help="Selection end, in UTF-16 code units")
    p_format.add_argument("format", choices=[f.value for f in InlineFormat], help="Format to toggle")
    p_format.set_defaults(func=handle_format)

    p_search = subparsers.add_parser("search", help="List stored notes matching a query")
    p_search.add_argument("query", help="Search query")
    p_search.add_argument("--store", type=Path, help="Path to the notes JSON file")
    p_search.add_argument("--user", help="Owner id of the notes")
    p_search.set_defaults(func=handle_search)

    p_serve = subparsers.add_parser("serve", help="Run the MCP server over stdio")
    p_serve.set_defaults(func=handle_serve)

    return parser


def main(argv: Optional[List[str]] = None) -> None:
    parser = build_parser()
    args = parser.parse_args(argv)

    settings = get_settings()
    configure_logging(settings.log.level, settings.log.json_format)

    args.func(args)


if __name__ == "__main__":
    main()
