import pytest

from eoedit.quest.errors import QuestError
from eoedit.quest.parser import parse_quest
from eoedit.quest.schema import default_schema
from eoedit.quest.serializer import serialize_quest
from eoedit.quest.skeletons import instantiate_skeleton, skeleton_description, skeleton_names
from eoedit.quest.validation import validate_quest


def test_library_contents():
    assert skeleton_names() == [
        "Fetch Quest", "Kill Quest", "Delivery Quest", "Collection Quest", "Class Change Quest",
    ]
    assert "monsters" in skeleton_description("Kill Quest")


@pytest.mark.parametrize("name", ["Fetch Quest", "Kill Quest", "Delivery Quest", "Collection Quest",
                                  "Class Change Quest"])
def test_skeletons_are_complete_quests(name):
    schema = default_schema()
    quest = instantiate_skeleton(name, 42, schema)
    assert quest.id == 42
    assert quest.states[0].name == "Begin"
    assert validate_quest(quest) == []

    reparsed = parse_quest(serialize_quest(quest, schema), schema, quest_id=42)
    assert reparsed == quest


def test_instances_are_independent():
    first = instantiate_skeleton("Fetch Quest", 1)
    first.states.clear()
    second = instantiate_skeleton("Fetch Quest", 2)
    assert len(second.states) == 4
    assert second.get_state("Reward").actions[-1].type == "End"


def test_typed_params():
    quest = instantiate_skeleton("Kill Quest", 3)
    rule = quest.get_state("KillMonsters").rules[0]
    assert rule.raw_text == "KilledNpcs(2, 10) goto ReturnToNPC"


def test_unknown_skeleton():
    with pytest.raises(QuestError):
        instantiate_skeleton("Escort Quest", 1)
