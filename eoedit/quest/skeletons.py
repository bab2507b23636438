"""Pre-built quest skeletons offered when creating a new quest.

The library ships as ``assets/quest_skeletons.json``: skeleton name ->
``{"description": ..., "quest": <quest document>}``. Each quest document is
validated against QUEST_DOCUMENT_SCHEMA when instantiated.
"""

import copy
import json
from functools import lru_cache
from pathlib import Path
from typing import Any, Dict, List, Optional

from .document import quest_from_dict
from .errors import QuestError
from .model import QuestData
from .schema import Schema

SKELETONS_PATH = Path(__file__).resolve().parent.parent / "assets" / "quest_skeletons.json"


@lru_cache(maxsize=1)
def _library() -> Dict[str, Dict[str, Any]]:
    with open(SKELETONS_PATH, "r", encoding="utf-8") as f:
        return json.load(f)


def skeleton_names() -> List[str]:
    return list(_library())


def _entry(name: str) -> Dict[str, Any]:
    entry = _library().get(name)
    if entry is None:
        raise QuestError(f"Unknown quest skeleton '{name}'")
    return entry


def skeleton_description(name: str) -> str:
    return _entry(name).get("description", "")


def instantiate_skeleton(name: str, quest_id: int, schema: Optional[Schema] = None) -> QuestData:
    """Build a fresh quest from a skeleton.

    Args:
        name: Skeleton name, one of ``skeleton_names()``
        quest_id: Identifier of the quest being created; the skeleton never
            overrides it
        schema: Schema used to generate the action/rule text

    Returns:
        A new QuestData sharing nothing with the library

    Raises:
        QuestError: If no skeleton has that name
    """
    document = copy.deepcopy(_entry(name)["quest"])
    return quest_from_dict(document, quest_id=quest_id, schema=schema)
