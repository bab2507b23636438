"""Recursive-descent parser for EQF quest scripts.

Grammar (keywords are case-insensitive, ``//`` starts a comment):

    quest        := (metadata | main_block | state_block | random_block)*
    metadata     := IDENT ['='] value? [';']
    main_block   := 'Main' '{' (metadata | statement)* '}'
    state_block  := 'State' name '{' statement* '}'
    random_block := 'random' name '{' (name [NUMBER] [';' | ','])* '}'
    statement    := 'desc' STRING
                  | ['action'] call [';']
                  | ['rule'] call 'goto' name [';']
    call         := IDENT '(' [arg (',' arg)*] ')'
    arg          := STRING | NUMBER | IDENT
    name         := STRING | IDENT

Structural problems raise MalformedQuestError and nothing is returned.
Unknown call names, duplicate descriptions and dangling gotos are reported
as warnings.
"""
from __future__ import annotations
import logging
import re
from typing import List, Optional, Sequence

from . import lexer
from .errors import (
    DuplicateDescriptionWarning, MalformedQuestError, QuestWarning, UnknownSymbolWarning,
)
from .lexer import Token, tokenize
from .model import (
    METADATA_ALIASES, METADATA_FLAG_FIELDS, METADATA_INT_FIELDS, PARAM_STRING,
    IntParam, Param, QuestAction, QuestData, QuestRule, QuestState, RandomBlock, RandomTarget,
    StringParam, parse_int,
)
from .schema import ParamInfo, Schema, default_schema
from .serializer import refresh_action, refresh_rule
from .validation import find_dangling_gotos

_INTEGER_RE = re.compile(r"[+-]?\d+\Z")

_INT_KEYWORDS = dict(METADATA_INT_FIELDS)
_FLAG_KEYWORDS = dict(METADATA_FLAG_FIELDS)
_KNOWN_METADATA = {"questname", "version"} | set(_INT_KEYWORDS) | set(_FLAG_KEYWORDS) | set(METADATA_ALIASES)

_NAME_KINDS = (lexer.STRING, lexer.IDENT)
_ARG_KINDS = (lexer.STRING, lexer.NUMBER, lexer.IDENT)


def sniff_param(token: Token) -> Param:
    """Type an argument without schema help.

    Quoted tokens are strings, integer literals are integers, anything else
    is kept as text and remembered as bare so it is written back unquoted.
    """
    if token.kind == lexer.STRING:
        return StringParam(token.value)
    if token.kind == lexer.NUMBER and _INTEGER_RE.match(token.value):
        return IntParam(int(token.value))
    return StringParam(token.value, bare=True)


def coerce_param(token: Token, info: ParamInfo) -> Param:
    """Type an argument as the schema declares it; never raises."""
    if info.type == PARAM_STRING:
        return StringParam(token.value)
    if token.kind == lexer.IDENT:
        logging.debug(f"Non-numeric value {token.value!r} for integer parameter {info.name!r}, using 0")
        return IntParam(0)
    return IntParam(parse_int(token.value))


def coerce_args(args: Sequence[Token], infos: Optional[Sequence[ParamInfo]]) -> List[Param]:
    """Type call arguments by schema slot, sniffing past the declared slots."""
    params = []
    for idx, token in enumerate(args):
        if infos is not None and idx < len(infos):
            params.append(coerce_param(token, infos[idx]))
        else:
            params.append(sniff_param(token))
    return params


class Call:
    __slots__ = ("name", "args", "goto", "token", "semicolon")

    def __init__(self, name: str, args: List[Token], goto: Optional[str], token: Token,
                 semicolon: bool = False):
        self.name = name
        self.args = args
        self.goto = goto
        self.token = token
        self.semicolon = semicolon


class QuestParser:
    """Parser over a token stream; one instance per document."""

    def __init__(self, text: str, schema: Optional[Schema] = None,
                 warnings: Optional[List[QuestWarning]] = None):
        self.tokens = tokenize(text)
        self.pos = 0
        self.schema = schema or default_schema()
        self.warnings = warnings if warnings is not None else []

    # --- token helpers ---
    def peek(self, offset: int = 0) -> Token:
        idx = min(self.pos + offset, len(self.tokens) - 1)
        return self.tokens[idx]

    def advance(self) -> Token:
        token = self.peek()
        if token.kind != lexer.EOF:
            self.pos += 1
        return token

    def accept(self, kind: str) -> Optional[Token]:
        if self.peek().kind == kind:
            return self.advance()
        return None

    def expect(self, kinds, what: str) -> Token:
        if isinstance(kinds, str):
            kinds = (kinds,)
        token = self.peek()
        if token.kind not in kinds:
            raise MalformedQuestError(f"expected {what}, found {token.describe()}", token.line, token.column)
        return self.advance()

    def at_keyword(self, word: str, offset: int = 0) -> bool:
        token = self.peek(offset)
        return token.kind == lexer.IDENT and token.value.lower() == word

    def warn(self, warning: QuestWarning) -> None:
        logging.warning(f"Quest script: {warning}")
        self.warnings.append(warning)

    # --- document ---
    def parse(self, quest_id: int = 0) -> QuestData:
        quest = QuestData(id=quest_id)
        while self.peek().kind != lexer.EOF:
            token = self.peek()
            if token.kind == lexer.SEMI:
                self.advance()
            elif self.at_keyword("main") and self.peek(1).kind == lexer.LBRACE:
                self._parse_main(quest)
            elif self.at_keyword("state") and self.peek(1).kind in _NAME_KINDS:
                state = self._parse_state()
                if quest.get_state(state.name) is not None:
                    raise MalformedQuestError(f"duplicate state '{state.name}'", token.line, token.column)
                quest.states.append(state)
            elif self.at_keyword("random") and self.peek(1).kind in _NAME_KINDS:
                block = self._parse_random()
                if quest.get_random_block(block.name) is not None:
                    raise MalformedQuestError(f"duplicate random block '{block.name}'", token.line, token.column)
                quest.random_blocks.append(block)
            elif token.kind == lexer.IDENT and self.peek(1).kind != lexer.LPAREN:
                self._parse_metadata(quest)
            else:
                raise MalformedQuestError(f"unexpected {token.describe()} outside of a block",
                                          token.line, token.column)
        return quest

    def _parse_metadata(self, quest: QuestData) -> None:
        key_token = self.advance()
        key = key_token.value.lower()
        key = METADATA_ALIASES.get(key, key)
        value: Optional[Token] = None

        if self.accept(lexer.EQUALS):
            value = self.expect(_ARG_KINDS, f"a value for '{key_token.value}'")
        else:
            nxt = self.peek()
            if key in _FLAG_KEYWORDS:
                if nxt.kind == lexer.NUMBER and nxt.line == key_token.line:
                    value = self.advance()
            elif nxt.kind in (lexer.STRING, lexer.NUMBER) or (
                    nxt.kind == lexer.IDENT and nxt.line == key_token.line):
                value = self.advance()
        self.accept(lexer.SEMI)

        if key == "questname":
            quest.quest_name = value.value if value is not None else ""
        elif key == "version":
            quest.version = parse_int(value.value, 1) if value is not None else 1
        elif key in _INT_KEYWORDS:
            setattr(quest, _INT_KEYWORDS[key], parse_int(value.value) if value is not None else 0)
        elif key in _FLAG_KEYWORDS:
            setattr(quest, _FLAG_KEYWORDS[key], value is None or parse_int(value.value) != 0)
        else:
            self.warn(UnknownSymbolWarning(f"unknown quest attribute '{key_token.value}'",
                                           key_token.line, symbol=key_token.value))
            quest.extra_metadata[key_token.value] = sniff_param(value) if value is not None else None

    # --- blocks ---
    def _parse_main(self, quest: QuestData) -> None:
        opener = self.advance()
        if quest.main is not None:
            raise MalformedQuestError("duplicate Main block", opener.line, opener.column)
        self.expect(lexer.LBRACE, "'{' after Main")
        main = QuestState(name="Main")
        self._parse_body(main, opener, "Main block", quest=quest)
        quest.main = main

    def _parse_state(self) -> QuestState:
        opener = self.advance()
        name = self.expect(_NAME_KINDS, "a state name").value
        self.expect(lexer.LBRACE, f"'{{' after State '{name}'")
        state = QuestState(name=name)
        self._parse_body(state, opener, f"State '{name}'")
        return state

    def _parse_random(self) -> RandomBlock:
        opener = self.advance()
        name = self.expect(_NAME_KINDS, "a random block name").value
        self.expect(lexer.LBRACE, f"'{{' after random '{name}'")
        block = RandomBlock(name=name)
        while not self.accept(lexer.RBRACE):
            token = self.peek()
            if token.kind == lexer.EOF:
                raise MalformedQuestError(f"random '{name}' is never closed", opener.line, opener.column)
            if token.kind in (lexer.SEMI, lexer.COMMA):
                self.advance()
                continue
            target = self.expect(_NAME_KINDS, f"a target state in random '{name}'")
            weight = 1
            if self.peek().kind == lexer.NUMBER:
                weight_token = self.advance()
                weight = parse_int(weight_token.value, 1)
                if weight < 0:
                    raise MalformedQuestError(f"negative weight for '{target.value}'",
                                              weight_token.line, weight_token.column)
            block.targets.append(RandomTarget(state=target.value, weight=weight))
        return block

    def _parse_body(self, state: QuestState, opener: Token, label: str,
                    quest: Optional[QuestData] = None) -> None:
        seen_desc = False
        while not self.accept(lexer.RBRACE):
            token = self.peek()
            if token.kind == lexer.EOF:
                raise MalformedQuestError(f"{label} is never closed", opener.line, opener.column)
            if token.kind == lexer.SEMI:
                self.advance()
                continue
            if token.kind != lexer.IDENT:
                raise MalformedQuestError(f"unexpected {token.describe()} in {label}", token.line, token.column)

            if self.at_keyword("desc") and self.peek(1).kind == lexer.STRING:
                self.advance()
                if seen_desc:
                    self.warn(DuplicateDescriptionWarning(
                        f"{label} has more than one desc, the last one wins", token.line, state=state.name))
                state.description = self.advance().value
                seen_desc = True
                self.accept(lexer.SEMI)
                continue

            if (self.at_keyword("action") or self.at_keyword("rule")) and \
                    self.peek(1).kind == lexer.IDENT and self.peek(2).kind == lexer.LPAREN:
                self.advance()
            elif self.peek(1).kind != lexer.LPAREN:
                if quest is not None and token.value.lower() in _KNOWN_METADATA:
                    self._parse_metadata(quest)
                    continue
                raise MalformedQuestError(f"expected a statement in {label}, found {token.describe()}",
                                          token.line, token.column)

            self._add_call(state, self.parse_call())

    def parse_call(self) -> Call:
        name_token = self.advance()
        self.expect(lexer.LPAREN, f"'(' after '{name_token.value}'")
        args: List[Token] = []
        if not self.accept(lexer.RPAREN):
            while True:
                args.append(self._parse_argument(name_token.value))
                if self.accept(lexer.COMMA):
                    continue
                if self.accept(lexer.RPAREN):
                    break
                raise MalformedQuestError(f"missing ')' in call to '{name_token.value}'",
                                          name_token.line, name_token.column)

        goto = None
        if self.at_keyword("goto"):
            goto_token = self.advance()
            target = self.peek()
            if target.kind not in _NAME_KINDS or target.line != goto_token.line:
                raise MalformedQuestError(f"rule '{name_token.value}' has no goto target",
                                          goto_token.line, goto_token.column)
            goto = self.advance().value
        semicolon = self.accept(lexer.SEMI) is not None
        return Call(name_token.value, args, goto, name_token, semicolon)

    def _parse_argument(self, call_name: str) -> Token:
        """One argument: every token up to the next ',' or ')'.

        Hand-edited values such as ``12abc``, ``1e5`` or ``1 000`` lex as
        several tokens; they are joined back into one token carrying the
        source text so a single bad value is coerced instead of rejected.
        """
        first = self.expect(_ARG_KINDS, f"an argument to '{call_name}'")
        pieces = [first]
        while self.peek().kind in _ARG_KINDS:
            pieces.append(self.advance())
        if len(pieces) == 1:
            return first

        text = first.source_text()
        for prev, token in zip(pieces, pieces[1:]):
            if token.line != prev.line or token.column > prev.end_column:
                text += " "
            text += token.source_text()
        kind = lexer.NUMBER if first.kind == lexer.NUMBER else lexer.IDENT
        return Token(kind, text, first.line, first.column)

    def _add_call(self, state: QuestState, call: Call) -> None:
        token = call.token
        if call.goto is None:
            entry = self.schema.actions.get(call.name)
            if entry is None and call.name in self.schema.rules:
                raise MalformedQuestError(f"rule '{call.name}' has no goto clause", token.line, token.column)
            if entry is None:
                self.warn(UnknownSymbolWarning(f"unknown action '{call.name}'", token.line, symbol=call.name))
            params = coerce_args(call.args, entry.params if entry else None)
            state.actions.append(refresh_action(QuestAction(type=call.name, params=params), self.schema))
        else:
            entry = self.schema.rules.get(call.name)
            if entry is None:
                self.warn(UnknownSymbolWarning(f"unknown rule '{call.name}'", token.line, symbol=call.name))
            params = coerce_args(call.args, entry.params if entry else None)
            rule = QuestRule(type=call.name, params=params, goto_state=call.goto)
            state.rules.append(refresh_rule(rule, self.schema))


def parse_quest(text: str, schema: Optional[Schema] = None, quest_id: int = 0,
                warnings: Optional[List[QuestWarning]] = None) -> QuestData:
    """Parse EQF text into a QuestData.

    Args:
        text: Quest script source
        schema: Action/rule schema used to type parameters
            (defaults to the built-in vocabulary)
        quest_id: Identifier to assign (quest ids come from file names)
        warnings: Optional list receiving non-fatal warnings

    Returns:
        The parsed quest

    Raises:
        MalformedQuestError: If the text is not a structurally valid script
    """
    parser = QuestParser(text, schema, warnings)
    quest = parser.parse(quest_id)
    for warning in find_dangling_gotos(quest):
        parser.warn(warning)
    return quest
