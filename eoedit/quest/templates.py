"""Reusable state templates.

A state template is a partial quest file holding only the content of one
state, one statement per line:

    desc    "Description"
    action  ActionName(params);
    rule    RuleName(params) goto StateName

Templates live as ``*.eqf`` files in ``<config>/templates/states``; the file
name without extension is the template name. Parameters are typed by
sniffing (quoted -> string, integer literal -> integer), not by schema.
"""
from __future__ import annotations
import asyncio
import logging
import re
from dataclasses import dataclass, field
from pathlib import Path
from typing import Callable, Dict, List, Optional

from ..cache import SingleFlight
from ..config import STATE_TEMPLATE_SUFFIX, get_state_templates_dir
from . import lexer
from .errors import ConfigLoadError, MalformedQuestError, TemplateParseError
from .model import QuestAction, QuestRule
from .parser import QuestParser, coerce_args
from .schema import Schema, read_document
from .serializer import format_params, refresh_rule

_KEYWORD_RE = re.compile(r"([A-Za-z_]+)")

# No schema at template-parse time: raw text is written without coercion
_UNTYPED = Schema()


@dataclass
class StateTemplateData:
    description: str = ""
    actions: List[QuestAction] = field(default_factory=list)
    rules: List[QuestRule] = field(default_factory=list)


class TemplateLibrary(dict):
    """Template name -> StateTemplateData, plus the files that failed to parse."""

    def __init__(self, *args, **kwargs):
        super().__init__(*args, **kwargs)
        self.failures: Dict[str, str] = {}


def _parse_line(template: StateTemplateData, keyword: str, text: str, line_no: int) -> None:
    try:
        parser = QuestParser(text, _UNTYPED)
        parser.advance()  # keyword

        if keyword == "desc":
            token = parser.accept(lexer.STRING)
            if token is not None:
                template.description = token.value
            return

        if parser.peek().kind != lexer.IDENT or parser.peek(1).kind != lexer.LPAREN:
            raise TemplateParseError(f"expected a call after '{keyword}'", line_no)
        call = parser.parse_call()
    except MalformedQuestError as e:
        raise TemplateParseError(e.reason, line_no) from e

    if parser.peek().kind != lexer.EOF:
        raise TemplateParseError(f"unexpected {parser.peek().describe()} after '{call.name}'", line_no)

    params = coerce_args(call.args, None)
    if keyword == "action":
        if call.goto is not None:
            raise TemplateParseError(f"action '{call.name}' cannot have a goto clause", line_no)
        # the source line decides the semicolon until a schema refresh
        raw_text = f"{call.name}({format_params(params)}){';' if call.semicolon else ''}"
        template.actions.append(QuestAction(type=call.name, params=params, raw_text=raw_text))
    else:
        if call.goto is None:
            raise TemplateParseError(f"rule '{call.name}' has no goto clause", line_no)
        rule = QuestRule(type=call.name, params=params, goto_state=call.goto)
        template.rules.append(refresh_rule(rule, _UNTYPED))


def parse_state_template(text: str) -> StateTemplateData:
    """Parse the content of one state template file.

    Blank lines, ``//`` comments and lines starting with any other keyword
    are skipped.

    Raises:
        TemplateParseError: If an action or rule line is structurally broken
    """
    template = StateTemplateData()
    for line_no, line in enumerate(text.splitlines(), 1):
        stripped = line.strip()
        if not stripped or stripped.startswith("//"):
            continue
        match = _KEYWORD_RE.match(stripped)
        if not match:
            continue
        keyword = match.group(1).lower()
        if keyword not in ("desc", "action", "rule"):
            continue
        _parse_line(template, keyword, stripped, line_no)
    return template


async def load_state_templates(directory: Optional[Path] = None,
                               read_text: Callable[[Path], str] = read_document) -> TemplateLibrary:
    """Load every template file of the library directory.

    A file that cannot be read or parsed is skipped and recorded in
    ``failures``; a missing or empty directory gives an empty library.
    """
    directory = Path(directory or get_state_templates_dir())
    library = TemplateLibrary()
    if not directory.is_dir():
        logging.info(f"State template directory {directory} does not exist")
        return library

    paths = sorted(p for p in directory.iterdir()
                   if p.is_file() and p.suffix.lower() == STATE_TEMPLATE_SUFFIX)
    for path in paths:
        name = path.stem
        try:
            text = await asyncio.to_thread(read_text, path)
            library[name] = parse_state_template(text)
        except (ConfigLoadError, TemplateParseError) as e:
            logging.warning(f"Failed to load state template {path.name}: {e}")
            library.failures[name] = str(e)

    logging.info(f"Loaded {len(library)} state templates from {directory}")
    if library.failures:
        logging.warning(f"State templates that failed to load: {', '.join(sorted(library.failures))}")
    return library


class StateTemplateCache(SingleFlight[TemplateLibrary]):
    """Process-wide template library with single-flight loading."""

    def __init__(self, directory: Optional[Path] = None,
                 read_text: Callable[[Path], str] = read_document):
        self.directory = directory
        super().__init__(lambda: load_state_templates(self.directory, read_text))
