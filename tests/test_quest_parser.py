import logging

import pytest

from eoedit.quest.errors import (
    DanglingGotoWarning, DuplicateDescriptionWarning, MalformedQuestError, UnknownSymbolWarning,
)
from eoedit.quest.model import IntParam, QuestRule, StringParam
from eoedit.quest.parser import parse_quest
from eoedit.quest.serializer import serialize_quest

SCENARIO_A = """\
State "Begin" {
  desc "Talk to NPC"
  AddNpcText(1, "Hello");
  AddNpcInput(1, 1, "Yes");
}
"""

FULL_QUEST = """\
// Tutorial quest
questname "Tutorial"
version 2
minlevel = 5
adminreq 1
hidden
reward_note = "see wiki"

Main {
  SetCoord(5, 10, 10);
}

State Begin {
  desc "Talk to NPC"
  AddNpcText(1, "Hello");
  AddNpcInput(1, 1, "Yes");
  AddNpcInput(1, 2, "No");
  InputNpc(1) goto Hunt
  InputNpc(2) goto Begin
}

State Hunt {
  desc "Kill 10 of NPC #2"
  KilledNpcs(2, 10) goto "Hand In"
}

State "Hand In" {
  GiveExp(1000);
  GiveItem(1, 500);
  End();
}

random Loot {
  Begin 3
  Hunt
}
"""


def test_scenario_a(sample_schema):
    quest = parse_quest(SCENARIO_A, sample_schema)
    assert quest.state_names() == ["Begin"]
    state = quest.states[0]
    assert state.description == "Talk to NPC"
    assert [a.type for a in state.actions] == ["AddNpcText", "AddNpcInput"]
    assert state.rules == []

    text = serialize_quest(quest, sample_schema, indent=2)
    assert '  AddNpcText(1, "Hello");\n' in text
    assert '  AddNpcInput(1, 1, "Yes");\n' in text


def test_scenario_c(sample_schema):
    warnings = []
    quest = parse_quest('State "A" {\n  KilledNpcs(2, 10) goto ReturnToNPC\n}\n', sample_schema, warnings=warnings)
    rule = quest.states[0].rules[0]
    assert rule == QuestRule("KilledNpcs", [IntParam(2), IntParam(10)], "ReturnToNPC")
    assert rule.raw_text == "KilledNpcs(2, 10) goto ReturnToNPC"
    assert [type(w) for w in warnings] == [DanglingGotoWarning]


def test_params_follow_schema_types(sample_schema):
    quest = parse_quest('State S {\n  GiveItem(100, 5);\n  AddNpcText(1, "Hello");\n}', sample_schema)
    give, text = quest.states[0].actions
    assert give.params == [IntParam(100), IntParam(5)]
    assert give.values == [100, 5]
    assert text.values == [1, "Hello"]


@pytest.mark.parametrize("value, expected", [
    ("abc", 0),
    ("5.5", 5),
    ("12abc", 12),
    ("1e5", 1),
    ("-", 0),
    ("1 000", 1),
    ("-7x", -7),
])
def test_malformed_integer_slot_becomes_zero(sample_schema, value, expected):
    quest = parse_quest(f"State S {{\n  GiveItem({value}, 3);\n}}", sample_schema)
    action = quest.states[0].actions[0]
    assert action.values == [expected, 3]
    assert action.raw_text == f"GiveItem({expected}, 3);"


def test_unknown_call_keeps_malformed_values_as_text(sample_schema):
    quest = parse_quest("State S {\n  Mystery(12abc, -, 1 000, 1e5);\n}", sample_schema)
    action = quest.states[0].actions[0]
    assert action.values == ["12abc", "-", "1 000", "1e5"]
    assert all(p.bare for p in action.params)
    assert action.raw_text == "Mystery(12abc, -, 1 000, 1e5);"


def test_string_slot_accepts_unquoted_value(sample_schema):
    quest = parse_quest("State S {\n  AddNpcText(1, 42);\n}", sample_schema)
    action = quest.states[0].actions[0]
    assert action.params[1] == StringParam("42")
    assert action.raw_text == 'AddNpcText(1, "42");'


def test_unknown_symbols_are_sniffed(sample_schema, caplog):
    warnings = []
    text = 'State S {\n  Mystery(1, "x", bare, 2.5);\n  Oracle(3) goto S\n}'
    with caplog.at_level(logging.WARNING):
        quest = parse_quest(text, sample_schema, warnings=warnings)
    action = quest.states[0].actions[0]
    assert action.params == [IntParam(1), StringParam("x"), StringParam("bare"), StringParam("2.5")]
    assert action.params[2].bare
    assert action.raw_text == 'Mystery(1, "x", bare, 2.5);'
    assert quest.states[0].rules[0].goto_state == "S"
    assert [w.symbol for w in warnings if isinstance(w, UnknownSymbolWarning)] == ["Mystery", "Oracle"]
    assert any("Mystery" in r.message for r in caplog.records)


def test_semicolon_is_optional_when_parsing(sample_schema):
    quest = parse_quest("State S {\n  GiveItem(1, 2)\n  Bar(3);\n}", sample_schema)
    assert [a.raw_text for a in quest.states[0].actions] == ["GiveItem(1, 2);", "Bar(3)"]


def test_dangling_goto_does_not_stop_parsing(sample_schema):
    warnings = []
    text = "State A {\n  TalkedToNpc(1) goto Nowhere\n}\nState B {\n  End();\n}"
    quest = parse_quest(text, sample_schema, warnings=warnings)
    assert quest.state_names() == ["A", "B"]
    dangling = [w for w in warnings if isinstance(w, DanglingGotoWarning)]
    assert [(w.state, w.target) for w in dangling] == [("A", "Nowhere")]


def test_end_is_not_a_dangling_target(sample_schema):
    warnings = []
    parse_quest("State A {\n  Always() goto End\n}", sample_schema, warnings=warnings)
    assert warnings == []


def test_full_quest(sample_schema):
    quest = parse_quest(FULL_QUEST, sample_schema, quest_id=12)
    assert quest.id == 12
    assert quest.quest_name == "Tutorial"
    assert quest.version == 2
    assert quest.min_level == 5
    assert quest.admin_req == 1
    assert quest.hidden and not quest.disabled
    assert quest.extra_metadata == {"reward_note": StringParam("see wiki")}
    assert quest.main.actions[0].type == "SetCoord"
    assert quest.state_names() == ["Begin", "Hunt", "Hand In"]
    assert quest.get_state("Hunt").rules[0].goto_state == "Hand In"
    loot = quest.get_random_block("Loot")
    assert [(t.state, t.weight) for t in loot.targets] == [("Begin", 3), ("Hunt", 1)]
    assert loot.total_weight() == 4


def test_round_trip_is_idempotent(sample_schema):
    first = parse_quest(FULL_QUEST, sample_schema, quest_id=12)
    text = serialize_quest(first, sample_schema)
    second = parse_quest(text, sample_schema, quest_id=12)
    assert second == first
    assert serialize_quest(second, sample_schema) == text


def test_keywords_are_case_insensitive(sample_schema):
    quest = parse_quest('STATE "A" {\n  DESC "x"\n  InputNpc(1) GOTO A\n}\nmain {\n}', sample_schema)
    assert quest.states[0].description == "x"
    assert quest.states[0].rules[0].goto_state == "A"
    assert quest.main is not None


def test_statements_may_share_a_line(sample_schema):
    quest = parse_quest("State A { GiveItem(1, 1); End(); }", sample_schema)
    assert [a.type for a in quest.states[0].actions] == ["GiveItem", "End"]


def test_template_style_prefixes_are_accepted(sample_schema):
    quest = parse_quest("State A {\n  action End();\n  rule Always() goto A\n}", sample_schema)
    assert quest.states[0].actions[0].type == "End"
    assert quest.states[0].rules[0].type == "Always"


def test_duplicate_desc_warns_and_last_wins(sample_schema):
    warnings = []
    quest = parse_quest('State A {\n  desc "one"\n  desc "two"\n}', sample_schema, warnings=warnings)
    assert quest.states[0].description == "two"
    assert isinstance(warnings[0], DuplicateDescriptionWarning)
    assert warnings[0].line == 3


def test_metadata_inside_main(sample_schema):
    quest = parse_quest('Main {\n  questname "Inside"\n  needclass 3\n}', sample_schema)
    assert quest.quest_name == "Inside"
    assert quest.class_req == 3


def test_flag_with_value(sample_schema):
    quest = parse_quest("disabled 0\nhidden_end 1\n", sample_schema)
    assert not quest.disabled
    assert quest.hidden_end


def test_empty_document(sample_schema):
    quest = parse_quest("// nothing here\n", sample_schema)
    assert quest.states == [] and quest.main is None


@pytest.mark.parametrize("text, reason, line", [
    ('State "A" {\n  AddNpcText(1, "x");\n', "never closed", 1),
    ('State "A" {\n  TalkedToNpc(1)\n}', "has no goto clause", 2),
    ('State "A" {\n  GiveItem(1, 2;\n}', "missing ')'", 2),
    ('State "A" {\n  InputNpc(1) goto\n}', "has no goto target", 2),
    ('State "A" {\n}\nState "A" {\n}', "duplicate state", 3),
    ("GiveItem(1, 2);", "outside of a block", 1),
    ('Main {\n}\nMain {\n}', "duplicate Main", 3),
    ("random R {\n  A -2\n}", "negative weight", 2),
    ('State "A" {\n  desc "oops\n}', "unterminated string", 2),
])
def test_structural_errors(sample_schema, text, reason, line):
    with pytest.raises(MalformedQuestError) as exc:
        parse_quest(text, sample_schema)
    assert reason in exc.value.reason
    assert exc.value.line == line


def test_default_schema_is_used_without_one():
    quest = parse_quest("State A {\n  GiveExp(5);\n  KilledNpcs(2, 10) goto A\n}")
    assert quest.states[0].actions[0].values == [5]
    assert quest.states[0].rules[0].values == [2, 10]
