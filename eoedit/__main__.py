"""Command line for quest scripts.

    python -m eoedit check 00001.eqf 00002.eqf
    python -m eoedit format 00001.eqf --write
    python -m eoedit templates
    python -m eoedit skeleton "Fetch Quest" --id 12
    python -m eoedit validate quest.json
"""
from __future__ import annotations

import argparse
import asyncio
import json
import logging
import sys
from pathlib import Path

from .config import get_log_level
from .quest.document import document_errors
from .quest.errors import MalformedQuestError, QuestError
from .quest.loader import quest_id_from_path
from .quest.parser import parse_quest
from .quest.serializer import serialize_quest
from .quest.skeletons import instantiate_skeleton, skeleton_description, skeleton_names
from .quest.validation import find_empty_gotos
from .resources import EditorResources


def _quest_id(path: Path) -> int:
    try:
        return quest_id_from_path(path)
    except QuestError:
        return 0


def cmd_check(args, resources: EditorResources) -> int:
    schema = asyncio.run(resources.load_editing_schema())
    failed = 0
    for path in args.files:
        warnings = []
        try:
            text = path.read_text(encoding="utf-8")
            quest = parse_quest(text, schema, quest_id=_quest_id(path), warnings=warnings)
        except (MalformedQuestError, OSError) as e:
            print(f"{path}: {e}", file=sys.stderr)
            failed += 1
            continue
        # parse has already logged the dangling gotos
        warnings.extend(find_empty_gotos(quest))
        for warning in warnings:
            print(f"{path}: warning: {warning}")
        print(f"{path}: OK ({len(quest.states)} states, {len(warnings)} warnings)")
    return 1 if failed else 0


def cmd_format(args, resources: EditorResources) -> int:
    schema = asyncio.run(resources.load_editing_schema())
    try:
        text = args.file.read_text(encoding="utf-8")
        quest = parse_quest(text, schema, quest_id=_quest_id(args.file))
    except (MalformedQuestError, OSError) as e:
        print(f"{args.file}: {e}", file=sys.stderr)
        return 1
    text = serialize_quest(quest, schema, args.indent)
    if args.write:
        args.file.write_text(text, encoding="utf-8")
        print(f"Formatted {args.file}")
    else:
        sys.stdout.write(text)
    return 0


def cmd_templates(args, resources: EditorResources) -> int:
    library = asyncio.run(resources.load_state_templates())
    for name, template in sorted(library.items()):
        summary = f"{len(template.actions)} actions, {len(template.rules)} rules"
        if template.description:
            summary = f"{template.description!r}: {summary}"
        print(f"{name}: {summary}")
    for name, reason in sorted(library.failures.items()):
        print(f"{name}: FAILED: {reason}", file=sys.stderr)
    return 1 if library.failures else 0


def cmd_skeleton(args, resources: EditorResources) -> int:
    if args.name is None:
        for name in skeleton_names():
            print(f"{name}: {skeleton_description(name)}")
        return 0
    schema = asyncio.run(resources.load_editing_schema())
    try:
        quest = instantiate_skeleton(args.name, args.id, schema)
    except QuestError as e:
        print(str(e), file=sys.stderr)
        return 2
    sys.stdout.write(serialize_quest(quest, schema))
    return 0


def cmd_validate(args, resources: EditorResources) -> int:
    try:
        with args.file.open("r", encoding="utf-8") as f:
            payload = json.load(f)
    except (OSError, ValueError) as e:
        print(f"{args.file}: {e}", file=sys.stderr)
        return 2
    errors = document_errors(payload)
    if errors:
        for msg in errors:
            print(f"{args.file}: {msg}", file=sys.stderr)
        print(f"FAILED: {len(errors)} schema violation(s).", file=sys.stderr)
        return 1
    print(f"OK: {args.file} is a valid quest document")
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="eoedit", description="Check, format and scaffold EQF quest scripts.")
    parser.add_argument(
        "--config-dir",
        type=Path,
        default=None,
        help="Directory with actions.ini, rules.ini and templates/states (default: EQF_CONFIG_DIR or bundled).",
    )
    sub = parser.add_subparsers(dest="command", required=True)

    p = sub.add_parser("check", help="Parse quest files and report warnings.")
    p.add_argument("files", nargs="+", type=Path)
    p.set_defaults(func=cmd_check)

    p = sub.add_parser("format", help="Rewrite a quest file in canonical layout.")
    p.add_argument("file", type=Path)
    p.add_argument("--write", action="store_true", help="Overwrite the file instead of printing.")
    p.add_argument("--indent", type=int, default=None, help="Block indent (default: EQF_INDENT or 2).")
    p.set_defaults(func=cmd_format)

    p = sub.add_parser("templates", help="List the state template library.")
    p.set_defaults(func=cmd_templates)

    p = sub.add_parser("skeleton", help="Print a quest skeleton, or list them without a name.")
    p.add_argument("name", nargs="?", default=None)
    p.add_argument("--id", type=int, default=1, help="Quest id of the new quest (default: 1).")
    p.set_defaults(func=cmd_skeleton)

    p = sub.add_parser("validate", help="Validate a quest JSON document.")
    p.add_argument("file", type=Path)
    p.set_defaults(func=cmd_validate)
    return parser


def main(argv=None) -> int:
    args = build_parser().parse_args(argv)
    logging.basicConfig(level=get_log_level(), format="%(levelname)s %(name)s: %(message)s")
    resources = EditorResources(args.config_dir)
    return args.func(args, resources)


if __name__ == "__main__":
    raise SystemExit(main())
