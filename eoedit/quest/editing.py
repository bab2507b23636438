"""In-place edits applied by the editor layer without reparsing.

Every operation that touches an action or rule regenerates its cached
``raw_text`` from the schema, so the text shown in the editor never drifts
from the parameters the user changed.
"""

import copy
from typing import Optional

from .errors import QuestError
from .model import (
    PARAM_INTEGER, PARAM_STRING, STATE_NAVIGATION_ACTIONS,
    QuestAction, QuestData, QuestRule, QuestState, StringParam,
    default_param, make_param, parse_int,
)
from .schema import Schema, default_schema
from .serializer import refresh_action, refresh_rule, refresh_state
from .templates import StateTemplateData


def new_state_name(quest: QuestData, base: str = "NewState") -> str:
    """First free name out of ``base``, ``base1``, ``base2``..."""
    existing = set(quest.state_names())
    name = base
    counter = 1
    while name in existing:
        name = f"{base}{counter}"
        counter += 1
    return name


def add_state(quest: QuestData, name: Optional[str] = None) -> QuestState:
    """Append a well-formed empty state (no actions, no rules)."""
    if name is None:
        name = new_state_name(quest)
    elif quest.get_state(name) is not None:
        raise QuestError(f"State '{name}' already exists")
    state = QuestState(name=name)
    quest.states.append(state)
    return state


def duplicate_state(quest: QuestData, name: str, new_name: Optional[str] = None) -> QuestState:
    """Insert a deep copy of a state right after the original."""
    source = _require_state(quest, name)
    if new_name is None:
        new_name = new_state_name(quest, f"{name}Copy")
    elif quest.get_state(new_name) is not None:
        raise QuestError(f"State '{new_name}' already exists")
    clone = copy.deepcopy(source)
    clone.name = new_name
    quest.states.insert(quest.states.index(source) + 1, clone)
    return clone


def remove_state(quest: QuestData, name: str) -> QuestState:
    """Remove a state; references to it are left dangling for the user to fix."""
    state = _require_state(quest, name)
    quest.states.remove(state)
    return state


def rename_state(quest: QuestData, old_name: str, new_name: str,
                 schema: Optional[Schema] = None) -> QuestState:
    """Rename a state and every rule, SetState/Goto and random target pointing at it.

    Raises:
        QuestError: If the state is missing or the new name is taken
    """
    state = _require_state(quest, old_name)
    if new_name == old_name:
        return state
    if quest.get_state(new_name) is not None:
        raise QuestError(f"State '{new_name}' already exists")
    state.name = new_name

    blocks = list(quest.states)
    if quest.main is not None:
        blocks.append(quest.main)
    for block in blocks:
        for rule in block.rules:
            if rule.goto_state == old_name:
                rule.goto_state = new_name
                refresh_rule(rule, schema)
        for action in block.actions:
            if action.type in STATE_NAVIGATION_ACTIONS and action.params \
                    and str(action.params[0].value) == old_name:
                action.params[0] = StringParam(new_name)
                refresh_action(action, schema)
    for random_block in quest.random_blocks:
        for target in random_block.targets:
            if target.state == old_name:
                target.state = new_name
    return state


def new_action(action_type: str, schema: Optional[Schema] = None) -> QuestAction:
    """Action with one blank parameter per schema slot ("" or 0)."""
    schema = schema or default_schema()
    params = [default_param(info.type) for info in schema.action_params(action_type)]
    return refresh_action(QuestAction(type=action_type, params=params), schema)


def new_rule(rule_type: str, schema: Optional[Schema] = None, goto_state: str = "") -> QuestRule:
    """Rule with blank parameters; the goto may stay empty while editing."""
    schema = schema or default_schema()
    params = [default_param(info.type) for info in schema.rule_params(rule_type)]
    return refresh_rule(QuestRule(type=rule_type, params=params, goto_state=goto_state), schema)


def change_action_type(action: QuestAction, action_type: str, schema: Optional[Schema] = None) -> QuestAction:
    """Switch the action type, resetting parameters to the new type's blanks."""
    fresh = new_action(action_type, schema)
    action.type = fresh.type
    action.params = fresh.params
    action.raw_text = fresh.raw_text
    return action


def change_rule_type(rule: QuestRule, rule_type: str, schema: Optional[Schema] = None) -> QuestRule:
    """Switch the rule type, keeping the goto target."""
    fresh = new_rule(rule_type, schema, rule.goto_state)
    rule.type = fresh.type
    rule.params = fresh.params
    rule.raw_text = fresh.raw_text
    return rule


def set_action_param(action: QuestAction, index: int, value, schema: Optional[Schema] = None) -> QuestAction:
    schema = schema or default_schema()
    infos = schema.action_params(action.type)
    action.params[index] = _typed(value, infos[index].type if index < len(infos) else None)
    return refresh_action(action, schema)


def set_rule_param(rule: QuestRule, index: int, value, schema: Optional[Schema] = None) -> QuestRule:
    schema = schema or default_schema()
    infos = schema.rule_params(rule.type)
    rule.params[index] = _typed(value, infos[index].type if index < len(infos) else None)
    return refresh_rule(rule, schema)


def set_rule_goto(rule: QuestRule, goto_state: str, schema: Optional[Schema] = None) -> QuestRule:
    rule.goto_state = goto_state
    return refresh_rule(rule, schema)


def apply_state_template(state: QuestState, template: StateTemplateData,
                         schema: Optional[Schema] = None) -> QuestState:
    """Replace a state's actions and rules with copies of a template's.

    The template description is taken only when it is non-empty; the state
    keeps its name. The template itself is never modified.
    """
    if template.description:
        state.description = template.description
    state.actions = copy.deepcopy(template.actions)
    state.rules = copy.deepcopy(template.rules)
    return refresh_state(state, schema or default_schema())


def _typed(value, param_type: Optional[str]):
    if param_type == PARAM_STRING:
        return StringParam("" if value is None else str(getattr(value, "value", value)))
    if param_type == PARAM_INTEGER:
        raw = getattr(value, "value", value)
        if isinstance(raw, int) and not isinstance(raw, bool):
            return make_param(raw)
        return make_param(parse_int(str(raw)))
    return make_param(value)


def _require_state(quest: QuestData, name: str) -> QuestState:
    state = quest.get_state(name)
    if state is None:
        raise QuestError(f"No state named '{name}'")
    return state
