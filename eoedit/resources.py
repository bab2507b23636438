"""Shared editor resources: the action/rule schema and the state templates.

Construct one ``EditorResources`` at startup and pass it to whatever needs
the schema or the template library. Both are loaded lazily with
single-flight semantics and dropped together by ``invalidate()``.
"""
from __future__ import annotations
from pathlib import Path
from typing import Callable, Optional

from .config import get_config_dir, get_state_templates_dir
from .quest.schema import Schema, SchemaCache, read_document
from .quest.templates import StateTemplateCache, TemplateLibrary


class EditorResources:
    def __init__(self, config_dir: Optional[Path] = None,
                 read_text: Callable[[Path], str] = read_document):
        self.config_dir = Path(config_dir or get_config_dir())
        self.schema_cache = SchemaCache(self.config_dir, read_text)
        self.template_cache = StateTemplateCache(get_state_templates_dir(self.config_dir), read_text)

    async def load_schema(self) -> Schema:
        return await self.schema_cache.get()

    async def load_editing_schema(self) -> Schema:
        """Loaded schema with empty categories filled from the built-in vocabulary."""
        schema = await self.schema_cache.get()
        return schema.with_defaults()

    async def load_state_templates(self) -> TemplateLibrary:
        return await self.template_cache.get()

    def invalidate(self) -> None:
        self.schema_cache.invalidate()
        self.template_cache.invalidate()
