import asyncio

from eoedit.resources import EditorResources


def test_resources_load_from_config_dir(config_dir):
    resources = EditorResources(config_dir)

    async def scenario():
        schema = await resources.load_schema()
        templates = await resources.load_state_templates()
        return schema, templates

    schema, templates = asyncio.run(scenario())
    assert "Foo" in schema.actions
    assert list(templates) == ["Greeting"]


def test_editing_schema_falls_back_to_defaults(config_dir):
    (config_dir / "actions.ini").unlink()
    resources = EditorResources(config_dir)
    schema = asyncio.run(resources.load_editing_schema())
    assert "SetCoord" in schema.actions
    assert "KilledNpcs" in schema.rules


def test_invalidate_drops_both_caches(config_dir):
    resources = EditorResources(config_dir)

    async def scenario():
        first = await resources.load_schema()
        await resources.load_state_templates()
        resources.invalidate()
        assert not resources.schema_cache.loaded
        assert not resources.template_cache.loaded
        return first, await resources.load_schema()

    first, second = asyncio.run(scenario())
    assert first is not second
    assert first == second


def test_bundled_config_is_complete():
    resources = EditorResources()

    async def scenario():
        return await resources.load_schema(), await resources.load_state_templates()

    schema, templates = asyncio.run(scenario())
    assert len(schema.actions) == 29
    assert len(schema.rules) == 28
    assert schema.action_has_semicolon("AddNpcText")
    assert not schema.rules["Always"].has_semicolon
    assert {"NpcDialog", "ItemReward", "CollectItems"} <= set(templates)
    assert templates.failures == {}
