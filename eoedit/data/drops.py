"""NPC drop table text format.

One line per NPC::

    npc_id = item_id,min,max,percentage, item_id,min,max,percentage, ...

Lines starting with ``#`` and blank lines are ignored. Percentage is 0-100
and may be fractional.
"""

import re
from dataclasses import dataclass
from typing import Dict, List, Mapping, Optional, Sequence

HEADER = (
    "# NPC Drop Table Configuration\n"
    "# Format: npc_id = item_id,min,max,percentage, item_id,min,max,percentage, ...\n"
    "# Percentage is 0-100 (supports decimals like 0.5)\n"
    "\n"
)

_INT_RE = re.compile(r"[+-]?\d+")
_FLOAT_RE = re.compile(r"[+-]?(\d+\.?\d*|\.\d+)([eE][+-]?\d+)?")


@dataclass(frozen=True)
class DropItem:
    item_id: int
    min: int
    max: int
    percentage: float


def _leading_int(text: str) -> Optional[int]:
    match = _INT_RE.match(text.strip())
    return int(match.group(0)) if match else None


def _leading_float(text: str) -> Optional[float]:
    match = _FLOAT_RE.match(text.strip())
    return float(match.group(0)) if match else None


def _parse_group(parts: Sequence[str]) -> Optional[DropItem]:
    item_id, low, high = (_leading_int(p) for p in parts[:3])
    percentage = _leading_float(parts[3])
    if None in (item_id, low, high, percentage):
        return None
    return DropItem(item_id=item_id, min=low, max=high, percentage=percentage)


def parse_drops(text: str) -> Dict[int, List[DropItem]]:
    """Parse a drop table.

    Lines without exactly one ``=``, with a non-numeric npc id, or without a
    single valid group are skipped. Inside a line, a group with a
    non-numeric field is skipped and an incomplete trailing group is
    ignored. A later line for the same npc replaces the earlier one.
    """
    drops: Dict[int, List[DropItem]] = {}
    for line in text.split("\n"):
        stripped = line.strip()
        if not stripped or stripped.startswith("#"):
            continue
        parts = stripped.split("=")
        if len(parts) != 2:
            continue
        npc_id = _leading_int(parts[0])
        if npc_id is None:
            continue

        fields = [p.strip() for p in parts[1].strip().split(",")]
        items = []
        for i in range(0, len(fields) - 3, 4):
            item = _parse_group(fields[i:i + 4])
            if item is not None:
                items.append(item)
        if items:
            drops[npc_id] = items
    return drops


def _format_percentage(value: float) -> str:
    if float(value).is_integer():
        return str(int(value))
    return repr(float(value))


def serialize_drops(drops: Mapping[int, Sequence[DropItem]]) -> str:
    """Render a drop table: header comment, then one line per npc sorted by id.

    Npcs without drops are left out.
    """
    lines = []
    for npc_id in sorted(drops):
        items = drops[npc_id]
        if not items:
            continue
        groups = [f"{d.item_id},{d.min},{d.max},{_format_percentage(d.percentage)}" for d in items]
        lines.append(f"{npc_id} = {', '.join(groups)}\n")
    return HEADER + "".join(lines)
