"""Transition edges of a quest state machine.

The flow diagram lays these out; this module only derives the data.
"""

from dataclasses import dataclass
from typing import List

from .model import END_SENTINEL, QuestData
from .validation import navigation_target

END_NODE = "__END__"

KIND_RULE = "rule"
KIND_ACTION = "action"
KIND_END = "end"


@dataclass(frozen=True)
class Transition:
    source: str
    target: str
    label: str
    kind: str
    conditional: bool = False

    @property
    def id(self) -> str:
        return f"{self.source}-{self.label}-{self.target}"


def has_end_action(quest: QuestData) -> bool:
    return any(action.type == "End" for state in quest.states for action in state.actions)


def quest_transitions(quest: QuestData) -> List[Transition]:
    """Edges for rules, SetState/Goto actions and End actions.

    Edges to states that do not exist are left out; ``End`` (as an action,
    or as a goto when no state carries that name) leads to END_NODE.
    """
    names = set(quest.state_names())
    edges = []
    for state in quest.states:
        for rule in state.rules:
            target = rule.goto_state
            if target not in names:
                if target != END_SENTINEL:
                    continue
                target = END_NODE
            edges.append(Transition(state.name, target, rule.type, KIND_RULE,
                                    conditional=rule.type != "Always"))
        for action in state.actions:
            if action.type == "End":
                edges.append(Transition(state.name, END_NODE, "End", KIND_END))
                continue
            target = navigation_target(action)
            if target and target in names:
                edges.append(Transition(state.name, target, action.type, KIND_ACTION))
    return edges
