# src/app.py
from __future__ import annotations


import argparse
import asyncio
import copy
import logging
import sys
from pathlib import Path
from typing import Dict, Any, Optional

import yaml

# local imports
from editor import PageEditor
from labels import LabelRegistry
from pdfio import PdfDocumentStore, PdfPreviewRenderer
from persistence import JsonLabelStore, JsonPricingStore, sanitize_id
from session import EditorSession
from state import ComposerError, SaveStatus, ValidationError, default_label


# ---------------------------
# Config loading
# ---------------------------

DEFAULT_CONFIG: Dict[str, Any] = {
    "storage": {
        "dir": ".composer",
    },
    "autosave": {
        "text_delay": 0.8,        # seconds; typing coalesces into one save
        "structural_delay": 0.0,  # indent toggles and shape changes
        "saved_display": 2.0,     # how long a row shows "saved"
    },
    "preview": {
        "scale": 1.5,
        "cache_pages": 12,
    },
    "labels": {
        "presets_file": None,
    },
    "logging": {
        "level": "WARNING",
    },
}

def load_config(path: Optional[str]) -> Dict[str, Any]:
    cfg = copy.deepcopy(DEFAULT_CONFIG)
    if path:
        p = Path(path)
        if not p.exists():
            print(f"[composer] config not found: {p} (using defaults)")
            return cfg
        with p.open("r", encoding="utf-8") as f:
            user = yaml.safe_load(f) or {}
        # shallow merge per section
        for k, v in user.items():
            if isinstance(v, dict) and k in cfg and isinstance(cfg[k], dict):
                cfg[k].update(v)
            else:
                cfg[k] = v
    return cfg


# ---------------------------
# Console collaborators
# ---------------------------

class ConsoleNotifier:
    def success(self, message: str) -> None:
        print(f"[composer] {message}")

    def error(self, message: str) -> None:
        print(f"[composer] error: {message}", file=sys.stderr)


class ConsolePrompt:
    def __init__(self, assume_yes: bool = False):
        self.assume_yes = assume_yes

    async def __call__(self, title: str, message: str, confirm_label: str = "OK",
                       destructive: bool = False) -> bool:
        if self.assume_yes:
            return True
        print(f"{title}\n{message}")
        answer = await asyncio.to_thread(input, f"{confirm_label}? [y/N] ")
        return answer.strip().lower() in {"y", "yes"}


# ---------------------------
# App bootstrap
# ---------------------------

def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Page composer: label, reorder, insert, replace and delete PDF pages")
    parser.add_argument("--config", "-c", help="Path to config.yaml", default=None)
    parser.add_argument("--dir", "-d", help="Storage directory (overrides storage.dir)", default=None)
    parser.add_argument("--yes", "-y", action="store_true", help="Answer yes to confirmation prompts")
    parser.add_argument("--verbose", "-v", action="store_true", help="Debug logging")
    sub = parser.add_subparsers(dest="command", required=True)

    p = sub.add_parser("import", help="Store a PDF as a new document")
    p.add_argument("file")
    p.add_argument("--id", dest="document_id", default=None, help="Document id (default: file stem)")

    p = sub.add_parser("show", help="List the composed page sequence")
    p.add_argument("document_id")

    p = sub.add_parser("rename", help="Set the label of page N (1-based)")
    p.add_argument("document_id")
    p.add_argument("page", type=int)
    p.add_argument("name")

    p = sub.add_parser("indent", help="Toggle nesting of page N")
    p.add_argument("document_id")
    p.add_argument("page", type=int)

    p = sub.add_parser("insert", help="Insert the pages of FILE after page AFTER (0 = at start)")
    p.add_argument("document_id")
    p.add_argument("after", type=int)
    p.add_argument("file")

    p = sub.add_parser("replace", help="Replace page N with the first page of FILE")
    p.add_argument("document_id")
    p.add_argument("page", type=int)
    p.add_argument("file")

    p = sub.add_parser("delete", help="Delete page N")
    p.add_argument("document_id")
    p.add_argument("page", type=int)

    p = sub.add_parser("move", help="Move the unit at position FROM to position TO (1-based, as shown)")
    p.add_argument("document_id")
    p.add_argument("src", type=int)
    p.add_argument("dst", type=int)

    p = sub.add_parser("pricing", help="Add or remove the pricing section")
    p.add_argument("document_id")
    p.add_argument("action", choices=["add", "remove"])

    p = sub.add_parser("render", help="Render page N to a PNG file")
    p.add_argument("document_id")
    p.add_argument("page", type=int)
    p.add_argument("out")
    return parser


def main(argv: Optional[list[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    config = load_config(args.config)

    level = "DEBUG" if args.verbose else str(config.get("logging", {}).get("level", "WARNING")).upper()
    logging.basicConfig(level=level, format="%(asctime)s %(levelname)s %(name)s: %(message)s")

    root = Path(args.dir or config["storage"].get("dir", ".composer")).expanduser()
    try:
        return asyncio.run(_run(args, config, root))
    except ComposerError as e:
        print(f"[composer] error: {e}", file=sys.stderr)
        return 1


async def _run(args: argparse.Namespace, config: Dict[str, Any], root: Path) -> int:
    documents = PdfDocumentStore(root)
    label_store = JsonLabelStore(root)

    if args.command == "import":
        src = Path(args.file).expanduser()
        document_id = sanitize_id(args.document_id or src.stem)
        count = await documents.create(document_id, src.read_bytes())
        await label_store.persist(document_id, [default_label(i).as_dict() for i in range(count)])
        print(f"[composer] imported {src.name} as '{document_id}' ({count} pages)")
        return 0

    session = EditorSession(
        documents=documents,
        labels=label_store,
        pricing=JsonPricingStore(root),
        notifier=ConsoleNotifier(),
        confirm=ConsolePrompt(assume_yes=args.yes),
    )
    autosave = config.get("autosave", {})
    preview = config.get("preview", {})
    editor = PageEditor(
        session,
        registry=LabelRegistry(presets_file=config.get("labels", {}).get("presets_file")),
        renderer=PdfPreviewRenderer(
            documents,
            scale=float(preview.get("scale", 1.5)),
            cache_pages=int(preview.get("cache_pages", 12)),
        ),
        text_delay=float(autosave.get("text_delay", 0.8)),
        structural_delay=float(autosave.get("structural_delay", 0.0)),
        saved_display=float(autosave.get("saved_display", 2.0)),
    )

    await editor.open(args.document_id)
    try:
        ok = await _dispatch(editor, args)
    finally:
        await editor.close()
    return 0 if ok else 1


async def _dispatch(editor: PageEditor, args: argparse.Namespace) -> bool:
    cmd = args.command
    if cmd == "show":
        _print_rows(editor)
        return True
    if cmd == "rename":
        editor.rename(args.page - 1, args.name)
        await editor.done()
        return True
    if cmd == "indent":
        editor.toggle_indent(args.page - 1)
        await editor.done()
        return True
    if cmd == "insert":
        return await editor.insert_page(args.after, Path(args.file).expanduser().read_bytes())
    if cmd == "replace":
        return await editor.replace_page(args.page - 1, Path(args.file).expanduser().read_bytes())
    if cmd == "delete":
        return await editor.delete_page(args.page - 1)
    if cmd == "move":
        changed = await editor.move(args.src - 1, args.dst - 1)
        if changed:
            _print_rows(editor)
        return True
    if cmd == "pricing":
        if args.action == "add":
            return await editor.add_pricing()
        return await editor.remove_pricing()
    if cmd == "render":
        png = editor.preview(editor.composition().unit_at(_visual_of_page(editor, args.page)))
        Path(args.out).write_bytes(png or b"")
        print(f"[composer] wrote {args.out}")
        return True
    raise ValueError(f"Unknown command: {cmd}")


# ---------------------------
# Helpers
# ---------------------------

def _visual_of_page(editor: PageEditor, page_number: int) -> int:
    for visual, unit in enumerate(editor.composition()):
        if not unit.is_pricing and unit.page_index == page_number - 1:
            return visual
    raise ValidationError(f"Invalid page number: {page_number}")

def _print_rows(editor: PageEditor) -> None:
    marks = {SaveStatus.SAVING: " (saving)", SaveStatus.SAVED: " (saved)"}
    for row in editor.rows():
        if row.page_index < 0:
            print(f"{row.visual_number:>3}  $ {row.name}")
            continue
        pad = "    " if row.indent else ""
        print(f"{row.visual_number:>3}  {pad}{row.name}  [page {row.page_index + 1}]{marks.get(row.status, '')}")


if __name__ == "__main__":
    raise SystemExit(main())
