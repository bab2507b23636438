from eoedit.quest.graph import END_NODE, KIND_ACTION, KIND_END, KIND_RULE, has_end_action, quest_transitions
from eoedit.quest.model import IntParam, QuestAction, QuestData, QuestRule, QuestState, StringParam


def build_quest():
    return QuestData(states=[
        QuestState("Begin",
                   actions=[QuestAction("SetState", [StringParam("Menu")]),
                            QuestAction("Goto", [StringParam("Nowhere")])],
                   rules=[QuestRule("InputNpc", [IntParam(1)], "Menu"),
                          QuestRule("Always", [], "Begin"),
                          QuestRule("TalkedToNpc", [IntParam(1)], "Missing"),
                          QuestRule("Always", [], "End")]),
        QuestState("Menu", actions=[QuestAction("End")]),
    ])


def test_transitions():
    edges = quest_transitions(build_quest())
    assert [(e.source, e.target, e.label, e.kind, e.conditional) for e in edges] == [
        ("Begin", "Menu", "InputNpc", KIND_RULE, True),
        ("Begin", "Begin", "Always", KIND_RULE, False),
        ("Begin", END_NODE, "Always", KIND_RULE, False),
        ("Begin", "Menu", "SetState", KIND_ACTION, False),
        ("Menu", END_NODE, "End", KIND_END, False),
    ]
    assert edges[0].id == "Begin-InputNpc-Menu"


def test_has_end_action():
    assert has_end_action(build_quest())
    assert not has_end_action(QuestData(states=[QuestState("A")]))
