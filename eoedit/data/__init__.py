"""Game data formats that sit alongside the quest scripts."""

from .drops import DropItem, parse_drops, serialize_drops

__all__ = ["DropItem", "parse_drops", "serialize_drops"]
