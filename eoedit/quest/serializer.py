"""Quest model to EQF text.

The text of every action and rule is regenerated from ``type`` + ``params``
+ schema on each call; the cached ``raw_text`` is overwritten, never read.
Serialization does not fail on anything the model can hold: calls unknown
to the schema are written with a semicolon and without type coercion.
"""
from __future__ import annotations
import re
from typing import List, Optional, Sequence

from ..config import get_indent
from .model import (
    METADATA_FLAG_FIELDS, METADATA_INT_FIELDS, PARAM_STRING,
    IntParam, Param, QuestAction, QuestData, QuestRule, QuestState, RandomBlock, StringParam,
    parse_int,
)
from .schema import ParamInfo, Schema, default_schema

_NAME_RE = re.compile(r"[A-Za-z_][A-Za-z0-9_]*\Z")


def format_name(name: str) -> str:
    """State names go out bare when they are identifiers, quoted otherwise."""
    if _NAME_RE.match(name):
        return name
    return f'"{name}"'


def format_param(param: Param, info: Optional[ParamInfo] = None) -> str:
    if info is not None:
        if info.type == PARAM_STRING:
            return f'"{param.value}"'
        if isinstance(param, IntParam):
            return str(param.value)
        return str(parse_int(param.value))
    if isinstance(param, StringParam):
        if param.bare and param.value:
            return param.value
        return f'"{param.value}"'
    return str(param.value)


def format_params(params: Sequence[Param], infos: Optional[Sequence[ParamInfo]] = None) -> str:
    infos = infos or []
    parts = []
    for idx, param in enumerate(params):
        info = infos[idx] if idx < len(infos) else None
        parts.append(format_param(param, info))
    return ", ".join(parts)


def format_action(action: QuestAction, schema: Optional[Schema] = None) -> str:
    """``Type(args);`` with the semicolon decided by the action's signature."""
    schema = schema or default_schema()
    infos = schema.action_params(action.type)
    args = format_params(action.params, infos)
    semicolon = ";" if schema.action_has_semicolon(action.type) else ""
    return f"{action.type}({args}){semicolon}"


def format_rule(rule: QuestRule, schema: Optional[Schema] = None) -> str:
    """``Type(args) goto Target``; rules never carry a semicolon."""
    schema = schema or default_schema()
    infos = schema.rule_params(rule.type)
    args = format_params(rule.params, infos)
    return f"{rule.type}({args}) goto {format_name(rule.goto_state)}"


def refresh_action(action: QuestAction, schema: Optional[Schema] = None) -> QuestAction:
    action.raw_text = format_action(action, schema)
    return action


def refresh_rule(rule: QuestRule, schema: Optional[Schema] = None) -> QuestRule:
    rule.raw_text = format_rule(rule, schema)
    return rule


def refresh_state(state: QuestState, schema: Optional[Schema] = None) -> QuestState:
    for action in state.actions:
        refresh_action(action, schema)
    for rule in state.rules:
        refresh_rule(rule, schema)
    return state


def refresh_raw_text(quest: QuestData, schema: Optional[Schema] = None) -> QuestData:
    """Regenerate the cached text of every action and rule in the quest."""
    schema = schema or default_schema()
    if quest.main is not None:
        refresh_state(quest.main, schema)
    for state in quest.states:
        refresh_state(state, schema)
    return quest


def _block_body(state: QuestState, schema: Schema, pad: str) -> List[str]:
    lines = []
    if state.description:
        lines.append(f'{pad}desc "{state.description}"')
    for action in state.actions:
        lines.append(pad + refresh_action(action, schema).raw_text)
    for rule in state.rules:
        lines.append(pad + refresh_rule(rule, schema).raw_text)
    return lines


def serialize_state(state: QuestState, schema: Optional[Schema] = None, indent: Optional[int] = None) -> str:
    schema = schema or default_schema()
    pad = " " * (get_indent() if indent is None else indent)
    lines = [f'State "{state.name}" {{']
    lines.extend(_block_body(state, schema, pad))
    lines.append("}")
    return "\n".join(lines)


def serialize_random_block(block: RandomBlock, indent: Optional[int] = None) -> str:
    pad = " " * (get_indent() if indent is None else indent)
    lines = [f'random "{block.name}" {{']
    for target in block.targets:
        entry = format_name(target.state)
        if target.weight != 1:
            entry += f" {target.weight}"
        lines.append(pad + entry)
    lines.append("}")
    return "\n".join(lines)


def _metadata_lines(quest: QuestData) -> List[str]:
    lines = [f'questname = "{quest.quest_name}"', f"version = {quest.version}"]
    for keyword, attr in METADATA_INT_FIELDS:
        value = getattr(quest, attr)
        if value is not None:
            lines.append(f"{keyword} = {value}")
    for keyword, attr in METADATA_FLAG_FIELDS:
        if getattr(quest, attr):
            lines.append(keyword)
    for key, value in quest.extra_metadata.items():
        if value is None:
            lines.append(key)
        else:
            lines.append(f"{key} = {format_param(value)}")
    return lines


def serialize_quest(quest: QuestData, schema: Optional[Schema] = None, indent: Optional[int] = None) -> str:
    """Render a quest as EQF text.

    Args:
        quest: Quest to render
        schema: Action/rule schema deciding quoting and semicolons
            (defaults to the built-in vocabulary)
        indent: Spaces before each statement inside a block
            (defaults to the configured indent)

    Returns:
        The quest script, ending with a newline. States and random blocks
        appear in stored order.
    """
    schema = schema or default_schema()
    indent = get_indent() if indent is None else indent
    pad = " " * indent

    sections = ["\n".join(_metadata_lines(quest))]
    if quest.main is not None:
        sections.append("\n".join(["Main {"] + _block_body(quest.main, schema, pad) + ["}"]))
    for state in quest.states:
        sections.append(serialize_state(state, schema, indent))
    for block in quest.random_blocks:
        sections.append(serialize_random_block(block, indent))
    return "\n\n".join(sections) + "\n"
