"""Quest script data models.

This module defines the in-memory form of a parsed EQF quest: the tagged
parameter values, actions, rules, states, random blocks and the quest root.
``raw_text`` on actions and rules is a cache regenerated by the serializer;
it never takes part in equality.
"""

import re
from dataclasses import dataclass, field
from typing import ClassVar, Dict, List, Optional, Union

# Actions whose first parameter names a state of the same quest
STATE_NAVIGATION_ACTIONS = ("SetState", "Goto")

# Pseudo-target meaning "the quest ends here"; never a dangling reference
END_SENTINEL = "End"

PARAM_STRING = "string"
PARAM_INTEGER = "integer"

# Quest-level attributes: canonical keyword -> QuestData field, in emit order
METADATA_INT_FIELDS = [
    ("minlevel", "min_level"),
    ("maxlevel", "max_level"),
    ("needadmin", "admin_req"),
    ("needclass", "class_req"),
    ("needquest", "quest_req"),
    ("startnpc", "start_npc"),
]
METADATA_FLAG_FIELDS = [
    ("hidden", "hidden"),
    ("hidden_end", "hidden_end"),
    ("disabled", "disabled"),
]
METADATA_ALIASES = {
    "adminreq": "needadmin",
    "classreq": "needclass",
    "questreq": "needquest",
}


@dataclass(frozen=True)
class StringParam:
    """A string-typed call argument.

    ``bare`` remembers that the source wrote the token without quotes
    (only possible for calls unknown to the schema).
    """
    value: str
    bare: bool = field(default=False, compare=False)
    type: ClassVar[str] = PARAM_STRING


@dataclass(frozen=True)
class IntParam:
    """An integer-typed call argument."""
    value: int
    type: ClassVar[str] = PARAM_INTEGER


Param = Union[StringParam, IntParam]


def make_param(value) -> Param:
    """Wrap a plain Python value into a tagged parameter."""
    if isinstance(value, (StringParam, IntParam)):
        return value
    if isinstance(value, bool):
        return IntParam(int(value))
    if isinstance(value, int):
        return IntParam(value)
    return StringParam(str(value))


_INT_PREFIX_RE = re.compile(r"\s*([+-]?\d+)")


def parse_int(text: str, default: int = 0) -> int:
    """Leading-integer parse that never raises (``"12abc"`` -> 12, ``"x"`` -> default)."""
    match = _INT_PREFIX_RE.match(str(text))
    if not match:
        return default
    return int(match.group(1))


def default_param(param_type: str) -> Param:
    """Blank value for a freshly added call slot."""
    if param_type == PARAM_STRING:
        return StringParam("")
    return IntParam(0)


@dataclass
class QuestAction:
    """An imperative statement executed when a state is processed."""
    type: str
    params: List[Param] = field(default_factory=list)
    raw_text: str = field(default="", compare=False)

    @property
    def values(self) -> list:
        return [p.value for p in self.params]


@dataclass
class QuestRule:
    """A conditional transition: ``Type(params) goto State``."""
    type: str
    params: List[Param] = field(default_factory=list)
    goto_state: str = ""  # empty only while being edited
    raw_text: str = field(default="", compare=False)

    @property
    def values(self) -> list:
        return [p.value for p in self.params]


@dataclass
class QuestState:
    """A named node of the quest state machine."""
    name: str
    description: str = ""
    actions: List[QuestAction] = field(default_factory=list)
    rules: List[QuestRule] = field(default_factory=list)


@dataclass
class RandomTarget:
    state: str
    weight: int = 1


@dataclass
class RandomBlock:
    """Weighted choice among named targets."""
    name: str
    targets: List[RandomTarget] = field(default_factory=list)

    def total_weight(self) -> int:
        return sum(t.weight for t in self.targets)


@dataclass
class QuestData:
    """Root of one quest file.

    ``id`` comes from the file name (``00012.eqf`` is quest 12) and is
    never written into the script text.
    """
    id: int = 0
    quest_name: str = ""
    version: int = 1
    min_level: Optional[int] = None
    max_level: Optional[int] = None
    admin_req: Optional[int] = None
    class_req: Optional[int] = None
    quest_req: Optional[int] = None
    start_npc: Optional[int] = None
    hidden: bool = False
    hidden_end: bool = False
    disabled: bool = False
    extra_metadata: Dict[str, Optional[Param]] = field(default_factory=dict)  # unknown keys, in source order; None = bare
    main: Optional[QuestState] = None  # once-only setup block
    states: List[QuestState] = field(default_factory=list)
    random_blocks: List[RandomBlock] = field(default_factory=list)

    def get_state(self, name: str) -> Optional[QuestState]:
        """Look up a state by its exact (case-sensitive) name."""
        for state in self.states:
            if state.name == name:
                return state
        return None

    def state_names(self) -> List[str]:
        return [s.name for s in self.states]

    def get_random_block(self, name: str) -> Optional[RandomBlock]:
        for block in self.random_blocks:
            if block.name == name:
                return block
        return None
