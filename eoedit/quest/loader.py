"""Reading and writing quest script files.

Quest files are named after their id, zero padded: ``00012.eqf`` holds
quest 12. The id is taken from the file name and never from the text.
"""

import logging
from pathlib import Path
from typing import Dict, List, Optional

from .errors import QuestError, QuestWarning
from .model import QuestData
from .parser import parse_quest
from .schema import Schema
from .serializer import serialize_quest

QUEST_FILE_SUFFIX = ".eqf"
QUEST_ID_WIDTH = 5


def quest_id_from_path(path) -> int:
    """Quest id encoded in a file name (``00012.eqf`` -> 12).

    Raises:
        QuestError: If the file stem is not a number
    """
    stem = Path(path).stem
    if not stem.isdigit():
        raise QuestError(f"Quest file name '{Path(path).name}' is not a quest id")
    return int(stem)


def quest_file_name(quest_id: int) -> str:
    return f"{quest_id:0{QUEST_ID_WIDTH}d}{QUEST_FILE_SUFFIX}"


def load_quest_file(path, schema: Optional[Schema] = None,
                    warnings: Optional[List[QuestWarning]] = None) -> QuestData:
    """Parse one quest file; its id comes from the file name."""
    path = Path(path)
    text = path.read_text(encoding="utf-8")
    return parse_quest(text, schema, quest_id=quest_id_from_path(path), warnings=warnings)


def save_quest_file(quest: QuestData, path, schema: Optional[Schema] = None) -> Path:
    """Write a quest as EQF text, creating parent directories as needed.

    When ``path`` is a directory the file is named after the quest id.
    """
    path = Path(path)
    if path.is_dir():
        path = path / quest_file_name(quest.id)
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(serialize_quest(quest, schema), encoding="utf-8")
    logging.info(f"Saved quest {quest.id} to {path}")
    return path


def load_quest_directory(directory, schema: Optional[Schema] = None,
                         warnings: Optional[List[QuestWarning]] = None) -> Dict[int, QuestData]:
    """Load every numbered ``.eqf`` file of a directory, ordered by quest id.

    Files whose name is not a quest id are ignored. A malformed quest
    propagates its MalformedQuestError.
    """
    directory = Path(directory)
    found = []
    for path in directory.iterdir():
        if path.is_file() and path.suffix.lower() == QUEST_FILE_SUFFIX and path.stem.isdigit():
            found.append((int(path.stem), path))

    quests: Dict[int, QuestData] = {}
    for quest_id, path in sorted(found):
        quests[quest_id] = load_quest_file(path, schema, warnings)
    logging.info(f"Loaded {len(quests)} quests from {directory}")
    return quests
