import pytest

from eoedit.quest.schema import Schema, parse_schema_document

SAMPLE_ACTIONS = """\
; sample actions
[AddNpcText]
signature = AddNpcText(npcQuestId, "message");
description = Adds NPC dialogue.

[AddNpcInput]
signature = AddNpcInput(npcQuestId, inputId, "message");
description = Adds a reply link.

[GiveItem]
signature = GiveItem(itemId, amount);
description = Gives an item.

[SetState]
signature = SetState("state");
description = Moves to another state.

[End]
signature = End();
description = Ends the quest.

[Foo]
signature = Foo(value);
description = Action written with a semicolon.

[Bar]
signature = Bar(value)
description = Action written without a semicolon.
"""

SAMPLE_RULES = """\
; sample rules
[TalkedToNpc]
signature = TalkedToNpc(npcQuestId)
description = Talked to the NPC.

[InputNpc]
signature = InputNpc(inputId)
description = Picked a reply.

[KilledNpcs]
signature = KilledNpcs(npcId, amount)
description = Killed NPCs.

[Always]
signature = Always()
description = Always true.
"""

GREETING_TEMPLATE = """\
// greeting
desc "Greeting"
action AddNpcText(1, "Hello");
rule TalkedToNpc(1) goto Next
"""


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    for name in ("EQF_CONFIG_DIR", "EQF_INDENT", "EQF_LOG_LEVEL"):
        monkeypatch.delenv(name, raising=False)


@pytest.fixture
def sample_schema():
    return Schema(actions=parse_schema_document(SAMPLE_ACTIONS), rules=parse_schema_document(SAMPLE_RULES))


@pytest.fixture
def config_dir(tmp_path):
    root = tmp_path / "config"
    states = root / "templates" / "states"
    states.mkdir(parents=True)
    (root / "actions.ini").write_text(SAMPLE_ACTIONS, encoding="utf-8")
    (root / "rules.ini").write_text(SAMPLE_RULES, encoding="utf-8")
    (states / "Greeting.eqf").write_text(GREETING_TEMPLATE, encoding="utf-8")
    return root
