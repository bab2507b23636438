"""Non-fatal consistency checks over a parsed or edited quest.

Nothing here blocks parsing or export: quests are routinely saved with
forward references or half-finished rules while being edited.
"""

import logging
from typing import List, Optional, Set

from .errors import DanglingGotoWarning, EmptyGotoWarning, QuestWarning
from .model import END_SENTINEL, STATE_NAVIGATION_ACTIONS, QuestData, QuestState


def state_names(quest: QuestData) -> Set[str]:
    return {s.name for s in quest.states}


def navigation_target(action) -> Optional[str]:
    """State named by a SetState/Goto action, if any."""
    if action.type in STATE_NAVIGATION_ACTIONS and action.params:
        return str(action.params[0].value)
    return None


def _blocks(quest: QuestData) -> List[QuestState]:
    blocks = list(quest.states)
    if quest.main is not None:
        blocks.insert(0, quest.main)
    return blocks


def find_dangling_gotos(quest: QuestData) -> List[DanglingGotoWarning]:
    """Find references to states that do not exist in the quest.

    Checks rule goto targets, SetState/Goto action targets and random block
    targets. Empty targets are left to ``find_empty_gotos``; the End sentinel
    is always a valid target.

    Args:
        quest: Quest to check

    Returns:
        One warning per dangling reference, in document order
    """
    known = state_names(quest) | {END_SENTINEL}
    warnings = []

    for state in _blocks(quest):
        for action in state.actions:
            target = navigation_target(action)
            if target and target not in known:
                warnings.append(DanglingGotoWarning(
                    f"{action.type} in '{state.name}' targets unknown state '{target}'",
                    state=state.name, target=target))
        for rule in state.rules:
            if rule.goto_state and rule.goto_state not in known:
                warnings.append(DanglingGotoWarning(
                    f"{rule.type} in '{state.name}' goes to unknown state '{rule.goto_state}'",
                    state=state.name, target=rule.goto_state))

    for block in quest.random_blocks:
        for target in block.targets:
            if target.state not in known:
                warnings.append(DanglingGotoWarning(
                    f"random '{block.name}' picks unknown state '{target.state}'",
                    state=block.name, target=target.state))
    return warnings


def find_empty_gotos(quest: QuestData) -> List[EmptyGotoWarning]:
    """Rules whose goto target is an empty name."""
    warnings = []
    for state in _blocks(quest):
        for rule in state.rules:
            if not rule.goto_state:
                warnings.append(EmptyGotoWarning(f"{rule.type} in '{state.name}' has no goto target",
                                                 state=state.name))
    return warnings


def validate_quest(quest: QuestData, warnings: Optional[List[QuestWarning]] = None) -> List[QuestWarning]:
    """Collect every non-fatal problem of a quest, logging each one."""
    found: List[QuestWarning] = list(find_empty_gotos(quest))
    found.extend(find_dangling_gotos(quest))

    for warning in found:
        logging.warning(f"Quest {quest.id}: {warning}")
    if warnings is not None:
        warnings.extend(found)
    return found
