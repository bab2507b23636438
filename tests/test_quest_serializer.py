from eoedit.quest.model import (
    IntParam, QuestAction, QuestData, QuestRule, QuestState, RandomBlock, RandomTarget, StringParam,
)
from eoedit.quest.serializer import (
    format_action, format_name, format_rule, refresh_raw_text, serialize_quest, serialize_state,
)


def build_quest():
    begin = QuestState(
        name="Begin",
        description="Talk to NPC",
        actions=[QuestAction("AddNpcText", [IntParam(1), StringParam("Hello")])],
        rules=[QuestRule("TalkedToNpc", [IntParam(1)], "End")],
    )
    return QuestData(
        id=3,
        quest_name="Tutorial",
        min_level=5,
        hidden=True,
        states=[begin],
        random_blocks=[RandomBlock("Pick", [RandomTarget("Begin", 2), RandomTarget("End")])],
    )


def test_canonical_layout(sample_schema):
    expected = (
        'questname = "Tutorial"\n'
        "version = 1\n"
        "minlevel = 5\n"
        "hidden\n"
        "\n"
        'State "Begin" {\n'
        '  desc "Talk to NPC"\n'
        '  AddNpcText(1, "Hello");\n'
        "  TalkedToNpc(1) goto End\n"
        "}\n"
        "\n"
        'random "Pick" {\n'
        "  Begin 2\n"
        "  End\n"
        "}\n"
    )
    assert serialize_quest(build_quest(), sample_schema, indent=2) == expected


def test_semicolon_follows_each_signature(sample_schema):
    state = QuestState("S", actions=[QuestAction("Foo", [IntParam(1)]), QuestAction("Bar", [IntParam(2)])])
    text = serialize_state(state, sample_schema, indent=2)
    assert text.count(";") == 1
    assert "  Foo(1);\n" in text
    assert "  Bar(2)\n" in text


def test_stale_raw_text_is_regenerated(sample_schema):
    quest = build_quest()
    action = quest.states[0].actions[0]
    action.raw_text = 'AddNpcText(1, "Old");'
    action.params[1] = StringParam("New")
    text = serialize_quest(quest, sample_schema)
    assert '"Old"' not in text
    assert action.raw_text == 'AddNpcText(1, "New");'


def test_unknown_type_gets_semicolon_and_no_coercion(sample_schema):
    action = QuestAction("Mystery", [IntParam(1), StringParam("x"), StringParam("raw", bare=True)])
    assert format_action(action, sample_schema) == 'Mystery(1, "x", raw);'


def test_integer_slot_holding_text(sample_schema):
    action = QuestAction("GiveItem", [StringParam("12abc"), StringParam("")])
    assert format_action(action, sample_schema) == "GiveItem(12, 0);"


def test_string_slot_is_always_quoted(sample_schema):
    action = QuestAction("AddNpcText", [IntParam(1), StringParam("bare", bare=True)])
    assert format_action(action, sample_schema) == 'AddNpcText(1, "bare");'


def test_rule_targets(sample_schema):
    assert format_rule(QuestRule("Always", [], "Hand In"), sample_schema) == 'Always() goto "Hand In"'
    assert format_rule(QuestRule("Always", [], ""), sample_schema) == 'Always() goto ""'


def test_format_name():
    assert format_name("Begin") == "Begin"
    assert format_name("Step_2") == "Step_2"
    assert format_name("2nd") == '"2nd"'
    assert format_name("") == '""'


def test_main_block_and_extras(sample_schema):
    quest = QuestData(quest_name="Q", main=QuestState("Main", actions=[QuestAction("End")]))
    quest.extra_metadata["note"] = IntParam(7)
    quest.extra_metadata["legacy"] = None
    text = serialize_quest(quest, sample_schema, indent=4)
    assert "note = 7\nlegacy\n\nMain {\n    End();\n}\n" in text


def test_indent_from_environment(sample_schema, monkeypatch):
    monkeypatch.setenv("EQF_INDENT", "4")
    text = serialize_state(QuestState("S", description="d"), sample_schema)
    assert text == 'State "S" {\n    desc "d"\n}'


def test_refresh_raw_text_covers_main(sample_schema):
    quest = QuestData(main=QuestState("Main", actions=[QuestAction("GiveItem", [IntParam(1), IntParam(2)])]))
    refresh_raw_text(quest, sample_schema)
    assert quest.main.actions[0].raw_text == "GiveItem(1, 2);"
