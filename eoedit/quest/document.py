"""JSON form of a quest, as stored in editor project files and skeletons.

Defines the JSON schema the documents must follow and converts between
documents and QuestData. Parameter types come from the JSON value types:
numbers become integer parameters, strings become string parameters.
"""

from typing import Any, Dict, List, Optional

import jsonschema

from .model import (
    IntParam, Param, QuestAction, QuestData, QuestRule, QuestState, RandomBlock, RandomTarget,
    StringParam,
)
from .schema import Schema
from .serializer import refresh_raw_text

_PARAM = {"type": ["string", "integer"]}

_ACTION = {
    "type": "object",
    "required": ["type", "params"],
    "properties": {
        "type": {"type": "string", "minLength": 1},
        "params": {"type": "array", "items": _PARAM},
        "rawText": {"type": "string"},
    },
    "additionalProperties": False,
}

_RULE = {
    "type": "object",
    "required": ["type", "params", "gotoState"],
    "properties": {
        "type": {"type": "string", "minLength": 1},
        "params": {"type": "array", "items": _PARAM},
        "gotoState": {"type": "string"},
        "rawText": {"type": "string"},
    },
    "additionalProperties": False,
}

_STATE = {
    "type": "object",
    "required": ["name"],
    "properties": {
        "name": {"type": "string", "minLength": 1},
        "description": {"type": "string"},
        "actions": {"type": "array", "items": _ACTION},
        "rules": {"type": "array", "items": _RULE},
    },
    "additionalProperties": False,
}

_RANDOM_BLOCK = {
    "type": "object",
    "required": ["name", "targets"],
    "properties": {
        "name": {"type": "string", "minLength": 1},
        "targets": {
            "type": "array",
            "items": {
                "type": "object",
                "required": ["state"],
                "properties": {
                    "state": {"type": "string", "minLength": 1},
                    "weight": {"type": "integer", "minimum": 0, "default": 1},
                },
                "additionalProperties": False,
            },
        },
    },
    "additionalProperties": False,
}

_OPTIONAL_INT = {"type": ["integer", "null"]}

QUEST_DOCUMENT_SCHEMA = {
    "type": "object",
    "required": ["questName", "states"],
    "properties": {
        "id": {"type": "integer", "minimum": 0},
        "questName": {"type": "string"},
        "version": {"type": "integer", "default": 1},
        "minLevel": _OPTIONAL_INT,
        "maxLevel": _OPTIONAL_INT,
        "adminReq": _OPTIONAL_INT,
        "classReq": _OPTIONAL_INT,
        "questReq": _OPTIONAL_INT,
        "startNpc": _OPTIONAL_INT,
        "hidden": {"type": "boolean"},
        "hiddenEnd": {"type": "boolean"},
        "disabled": {"type": "boolean"},
        "extraMetadata": {
            "type": "object",
            "additionalProperties": {"type": ["string", "integer", "null"]},
        },
        "main": {"anyOf": [_STATE, {"type": "null"}]},
        "states": {"type": "array", "items": _STATE},
        "randomBlocks": {"type": "array", "items": _RANDOM_BLOCK},
    },
    "additionalProperties": False,
}

# camelCase document key -> QuestData attribute
_OPTIONAL_FIELDS = [
    ("minLevel", "min_level"),
    ("maxLevel", "max_level"),
    ("adminReq", "admin_req"),
    ("classReq", "class_req"),
    ("questReq", "quest_req"),
    ("startNpc", "start_npc"),
]
_FLAG_FIELDS = [
    ("hidden", "hidden"),
    ("hiddenEnd", "hidden_end"),
    ("disabled", "disabled"),
]

_VALIDATOR = jsonschema.Draft7Validator(QUEST_DOCUMENT_SCHEMA)


def validate_document(payload: Dict[str, Any]) -> bool:
    """Validate a quest document against QUEST_DOCUMENT_SCHEMA.

    Raises:
        jsonschema.ValidationError: If the document does not match
    """
    _VALIDATOR.validate(payload)
    return True


def _param_from_json(value) -> Param:
    if isinstance(value, str):
        return StringParam(value)
    return IntParam(int(value))


def _state_from_dict(data: Dict[str, Any]) -> QuestState:
    actions = [
        QuestAction(type=a["type"], params=[_param_from_json(p) for p in a["params"]])
        for a in data.get("actions", [])
    ]
    rules = [
        QuestRule(type=r["type"], params=[_param_from_json(p) for p in r["params"]], goto_state=r["gotoState"])
        for r in data.get("rules", [])
    ]
    return QuestState(name=data["name"], description=data.get("description", ""), actions=actions, rules=rules)


def quest_from_dict(data: Dict[str, Any], quest_id: Optional[int] = None,
                    schema: Optional[Schema] = None) -> QuestData:
    """Build a QuestData from a validated JSON document.

    Args:
        data: Quest document
        quest_id: Identifier to assign; overrides any ``id`` in the document
        schema: Schema used to regenerate the cached action/rule text

    Returns:
        Parsed QuestData

    Raises:
        jsonschema.ValidationError: If the document is invalid
    """
    validate_document(data)
    if quest_id is None:
        quest_id = data.get("id", 0)

    quest = QuestData(
        id=quest_id,
        quest_name=data["questName"],
        version=data.get("version", 1),
        hidden=data.get("hidden", False),
        hidden_end=data.get("hiddenEnd", False),
        disabled=data.get("disabled", False),
    )
    for key, attr in _OPTIONAL_FIELDS:
        setattr(quest, attr, data.get(key))
    for key, value in data.get("extraMetadata", {}).items():
        quest.extra_metadata[key] = None if value is None else _param_from_json(value)
    if data.get("main") is not None:
        quest.main = _state_from_dict(data["main"])
    quest.states = [_state_from_dict(s) for s in data["states"]]
    quest.random_blocks = [
        RandomBlock(name=b["name"], targets=[RandomTarget(t["state"], t.get("weight", 1)) for t in b["targets"]])
        for b in data.get("randomBlocks", [])
    ]
    return refresh_raw_text(quest, schema)


def _state_to_dict(state: QuestState) -> Dict[str, Any]:
    return {
        "name": state.name,
        "description": state.description,
        "actions": [
            {"type": a.type, "params": a.values, "rawText": a.raw_text} for a in state.actions
        ],
        "rules": [
            {"type": r.type, "params": r.values, "gotoState": r.goto_state, "rawText": r.raw_text}
            for r in state.rules
        ],
    }


def quest_to_dict(quest: QuestData, schema: Optional[Schema] = None) -> Dict[str, Any]:
    """Convert a quest to its JSON document (raw text regenerated first)."""
    refresh_raw_text(quest, schema)
    data: Dict[str, Any] = {
        "id": quest.id,
        "questName": quest.quest_name,
        "version": quest.version,
    }
    for key, attr in _OPTIONAL_FIELDS:
        value = getattr(quest, attr)
        if value is not None:
            data[key] = value
    for key, attr in _FLAG_FIELDS:
        if getattr(quest, attr):
            data[key] = True
    if quest.extra_metadata:
        data["extraMetadata"] = {
            k: (None if v is None else v.value) for k, v in quest.extra_metadata.items()
        }
    if quest.main is not None:
        data["main"] = _state_to_dict(quest.main)
    data["states"] = [_state_to_dict(s) for s in quest.states]
    data["randomBlocks"] = [
        {"name": b.name, "targets": [{"state": t.state, "weight": t.weight} for t in b.targets]}
        for b in quest.random_blocks
    ]
    return data


def document_errors(payload: Dict[str, Any]) -> List[str]:
    """All schema violations of a document, as readable messages."""
    errors = []
    for error in sorted(_VALIDATOR.iter_errors(payload), key=lambda e: list(e.path)):
        location = "/".join(str(p) for p in error.path) or "<root>"
        errors.append(f"{location}: {error.message}")
    return errors
