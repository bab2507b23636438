"""Action and rule schema loaded from ``actions.ini`` / ``rules.ini``.

Each section of a schema document describes one call:

    [AddNpcText]
    signature = AddNpcText(npcQuestId, "message");
    description = Adds a line of dialogue to a quest NPC.

The signature is the single source of truth for how many parameters a call
takes, which of them are quoted strings, and (for actions) whether the call
is terminated with a semicolon.
"""
from __future__ import annotations
import asyncio
import configparser
import logging
import re
from dataclasses import dataclass, field
from pathlib import Path
from typing import Callable, Dict, List, Optional

from ..cache import SingleFlight
from ..config import get_actions_path, get_rules_path
from .errors import ConfigLoadError
from .model import PARAM_INTEGER, PARAM_STRING

_ARGS_RE = re.compile(r"\(([^)]*)\)")


@dataclass(frozen=True)
class ParamInfo:
    name: str
    type: str  # "string" or "integer"


@dataclass
class SchemaEntry:
    """Documentation and parameter shape of one action or rule."""
    name: str
    signature: str
    description: str
    params: List[ParamInfo] = field(default_factory=list)

    @property
    def has_semicolon(self) -> bool:
        return signature_has_semicolon(self.signature)


@dataclass
class Schema:
    actions: Dict[str, SchemaEntry] = field(default_factory=dict)
    rules: Dict[str, SchemaEntry] = field(default_factory=dict)

    def get_documentation(self, word: str) -> Optional[SchemaEntry]:
        """Entry for an action or rule name (actions win on a clash)."""
        return self.actions.get(word) or self.rules.get(word)

    def action_names(self) -> List[str]:
        return list(self.actions)

    def rule_names(self) -> List[str]:
        return list(self.rules)

    def action_params(self, name: str) -> List[ParamInfo]:
        entry = self.actions.get(name)
        return list(entry.params) if entry else []

    def rule_params(self, name: str) -> List[ParamInfo]:
        entry = self.rules.get(name)
        return list(entry.params) if entry else []

    def action_has_semicolon(self, name: str) -> bool:
        entry = self.actions.get(name)
        if entry is None:
            return True
        return entry.has_semicolon

    def with_defaults(self) -> "Schema":
        """Copy whose empty categories are filled from the built-in vocabulary."""
        if self.actions and self.rules:
            return self
        fallback = default_schema()
        return Schema(
            actions=dict(self.actions) or fallback.actions,
            rules=dict(self.rules) or fallback.rules,
        )


def signature_has_semicolon(signature: str) -> bool:
    return signature.replace("`", "").strip().endswith(";")


def _split_top_level(args: str) -> List[str]:
    """Split on commas that are not inside a double-quoted string."""
    parts = []
    current = []
    in_quotes = False
    for ch in args:
        if ch == '"':
            in_quotes = not in_quotes
            current.append(ch)
        elif ch == "," and not in_quotes:
            parts.append("".join(current).strip())
            current = []
        else:
            current.append(ch)
    parts.append("".join(current).strip())
    return [p for p in parts if p]


def _classify_param(token: str) -> ParamInfo:
    if len(token) >= 2 and token.startswith("`") and token.endswith("`"):
        token = token[1:-1].strip()
    if len(token) >= 2 and token.startswith('"') and token.endswith('"'):
        return ParamInfo(name=token[1:-1], type=PARAM_STRING)
    return ParamInfo(name=token, type=PARAM_INTEGER)


def parse_params_from_signature(signature: str) -> List[ParamInfo]:
    """Extract typed parameters from a call pattern.

    Quoted tokens are string parameters (named by their dequoted text),
    everything else is an integer parameter named by the raw token.

    Args:
        signature: Call pattern such as ``AddNpcText(npcQuestId, "message");``

    Returns:
        Ordered list of ParamInfo, empty when there are no arguments
    """
    match = _ARGS_RE.search(signature)
    if not match or not match.group(1).strip():
        return []
    return [_classify_param(token) for token in _split_top_level(match.group(1))]


def parse_schema_document(text: str) -> Dict[str, SchemaEntry]:
    """Parse one INI schema document into name -> SchemaEntry.

    Sections lacking either ``signature`` or ``description`` are dropped.
    Lines are read with surrounding whitespace removed, so indented keys
    are keys rather than continuations. Entries before the first section
    are ignored. Malformed lines are skipped with a warning; the rest of
    the document is still used.
    """
    lines = [line.strip() for line in text.splitlines()]
    start = next((i for i, line in enumerate(lines) if line.startswith("[") and line.endswith("]")), None)
    if start is None:
        return {}
    if any(line and not line.startswith(";") for line in lines[:start]):
        logging.warning("Ignored schema entries before the first section")

    parser = configparser.ConfigParser(
        interpolation=None,
        comment_prefixes=(";",),
        inline_comment_prefixes=None,
        strict=False,
        default_section="__defaults__",
    )
    try:
        parser.read_string("\n".join(lines[start:]))
    except configparser.ParsingError as e:
        # ConfigParser keeps the sections it managed to read
        logging.warning(f"Skipped malformed schema lines: {e}")

    entries: Dict[str, SchemaEntry] = {}
    for section in parser.sections():
        signature = parser.get(section, "signature", fallback="").strip()
        description = parser.get(section, "description", fallback="").strip()
        if not signature or not description:
            continue
        entries[section] = SchemaEntry(
            name=section,
            signature=signature,
            description=description,
            params=parse_params_from_signature(signature),
        )
    return entries


# ---------------- Built-in vocabulary ----------------
# Used when actions.ini / rules.ini cannot be read so the editor stays usable.

DEFAULT_ACTIONS = [
    ("AddNpcText", 'AddNpcText(npcQuestId, "message");', "Adds a line of dialogue to the quest NPC's text box."),
    ("AddNpcInput", 'AddNpcInput(npcQuestId, inputId, "message");', "Adds a selectable reply link to the quest NPC's dialog."),
    ("AddNpcChat", 'AddNpcChat(npcQuestId, "message");', "Makes the quest NPC say a message in public chat."),
    ("AddNpcPM", 'AddNpcPM(npcQuestId, "message");', "Sends a private message from the quest NPC."),
    ("Roll", "Roll(amount);", "Rolls a random number between 1 and amount."),
    ("GiveItem", "GiveItem(itemId, amount);", "Gives the player an amount of an item."),
    ("RemoveItem", "RemoveItem(itemId, amount);", "Removes an amount of an item from the player."),
    ("GiveExp", "GiveExp(amount);", "Gives the player experience."),
    ("ShowHint", 'ShowHint("message");', "Shows a hint in the player's status bar."),
    ("PlaySound", "PlaySound(soundId);", "Plays a sound effect for the player."),
    ("SetCoord", "SetCoord(mapId, x, y);", "Warps the player to a map and coordinate."),
    ("Quake", "Quake(magnitude);", "Shakes the player's current map."),
    ("QuakeWorld", "QuakeWorld(magnitude);", "Shakes every map."),
    ("SetClass", "SetClass(classId);", "Changes the player's class."),
    ("SetRace", "SetRace(raceId);", "Changes the player's race."),
    ("SetHome", 'SetHome("home");', "Changes the player's home town."),
    ("SetTitle", 'SetTitle("title");', "Changes the player's title."),
    ("GiveKarma", "GiveKarma(amount);", "Gives the player karma."),
    ("RemoveKarma", "RemoveKarma(amount);", "Removes karma from the player."),
    ("StartQuest", 'StartQuest(questId, "quest state");', "Starts another quest at a given state."),
    ("SetQuestState", 'SetQuestState(questId, "quest state");', "Moves another quest to a given state."),
    ("ResetQuest", "ResetQuest(questId);", "Resets another quest."),
    ("GiveStat", 'GiveStat("stat", amount);', "Raises one of the player's stats."),
    ("RemoveStat", 'RemoveStat("stat", amount);', "Lowers one of the player's stats."),
    ("ResetDaily", "ResetDaily();", "Clears the daily completion flag of this quest."),
    ("Reset", "Reset();", "Resets this quest to its first state."),
    ("End", "End();", "Ends this quest."),
    ("SetState", 'SetState("state");', "Moves this quest to another state."),
    ("Goto", 'Goto("state");', "Jumps to another state immediately."),
]

DEFAULT_RULES = [
    ("TalkedToNpc", "TalkedToNpc(npcQuestId)", "The player talked to the quest NPC."),
    ("InputNpc", "InputNpc(inputId)", "The player picked a reply link."),
    ("Rolled", "Rolled(roll)", "The last Roll produced this value."),
    ("KilledNpcs", "KilledNpcs(npcId, amount)", "The player killed an amount of an NPC."),
    ("KilledPlayers", "KilledPlayers(amount)", "The player killed an amount of players."),
    ("GotItems", "GotItems(itemId, amount)", "The player holds at least an amount of an item."),
    ("LostItems", "LostItems(itemId, amount)", "The player holds less than an amount of an item."),
    ("UsedItem", "UsedItem(itemId, amount)", "The player used an item an amount of times."),
    ("EnterCoord", "EnterCoord(mapId, x, y)", "The player stepped on a coordinate."),
    ("LeaveCoord", "LeaveCoord(mapId, x, y)", "The player left a coordinate."),
    ("EnterMap", "EnterMap(mapId)", "The player entered a map."),
    ("LeaveMap", "LeaveMap(mapId)", "The player left a map."),
    ("IsClass", "IsClass(classId)", "The player has this class."),
    ("IsRace", "IsRace(raceId)", "The player has this race."),
    ("IsGender", "IsGender(genderId)", "The player has this gender."),
    ("CitizenOf", 'CitizenOf("homeName")', "The player is a citizen of this town."),
    ("GotSpell", "GotSpell(spellId)", "The player knows a spell."),
    ("LostSpell", "LostSpell(spellId)", "The player does not know a spell."),
    ("UsedSpell", "UsedSpell(spellId, amount)", "The player cast a spell an amount of times."),
    ("IsWearing", "IsWearing(itemId)", "The player has an item equipped."),
    ("StatGreater", 'StatGreater("statName", value)', "A stat is greater than a value."),
    ("StatLess", 'StatLess("statName", value)', "A stat is less than a value."),
    ("StatIs", 'StatIs("statName", value)', "A stat equals a value."),
    ("StatNot", 'StatNot("statName", value)', "A stat differs from a value."),
    ("StatBetween", 'StatBetween("statName", low_value, high_value)', "A stat lies within a range."),
    ("StatRpn", 'StatRpn("Reverse Polish Notion Formula")', "A reverse polish formula evaluates to true."),
    ("DoneDaily", "DoneDaily(value)", "The quest was completed this many times today."),
    ("Always", "Always()", "Always true; use as the last, unconditional rule."),
]


def _entries(table) -> Dict[str, SchemaEntry]:
    return {
        name: SchemaEntry(name, signature, description, parse_params_from_signature(signature))
        for name, signature, description in table
    }


def default_schema() -> Schema:
    return Schema(actions=_entries(DEFAULT_ACTIONS), rules=_entries(DEFAULT_RULES))


# ---------------- Loading ----------------

def read_document(path: Path) -> str:
    try:
        return Path(path).read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as e:
        raise ConfigLoadError(f"Could not read {path}: {e}") from e


async def _load_category(path: Path, read_text: Callable[[Path], str], label: str) -> Dict[str, SchemaEntry]:
    try:
        text = await asyncio.to_thread(read_text, path)
    except ConfigLoadError as e:
        logging.warning(f"Could not load {label} schema, using empty map: {e}")
        return {}
    entries = parse_schema_document(text)
    logging.info(f"Loaded {len(entries)} {label} from {path}")
    return entries


async def load_schema(config_dir: Optional[Path] = None,
                      read_text: Callable[[Path], str] = read_document) -> Schema:
    """Load the action and rule schema documents.

    Args:
        config_dir: Directory holding actions.ini and rules.ini
            (defaults to the configured directory)
        read_text: Document reader, raising ConfigLoadError on failure

    Returns:
        Schema; a category whose document is unreadable is left empty
    """
    actions = await _load_category(get_actions_path(config_dir), read_text, "actions")
    rules = await _load_category(get_rules_path(config_dir), read_text, "rules")
    return Schema(actions=actions, rules=rules)


class SchemaCache(SingleFlight[Schema]):
    """Process-wide schema holder with single-flight loading."""

    def __init__(self, config_dir: Optional[Path] = None,
                 read_text: Callable[[Path], str] = read_document):
        self.config_dir = config_dir
        super().__init__(lambda: load_schema(self.config_dir, read_text))
