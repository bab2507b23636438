"""EQF quest script package: model, parser, serializer and templates."""

from .errors import (
    QuestError, MalformedQuestError, ConfigLoadError, TemplateParseError,
    QuestWarning, UnknownSymbolWarning, DanglingGotoWarning, DuplicateDescriptionWarning, EmptyGotoWarning,
)
from .model import (
    StringParam, IntParam, QuestAction, QuestRule, QuestState, RandomTarget, RandomBlock, QuestData,
)
from .schema import ParamInfo, SchemaEntry, Schema, default_schema, load_schema, SchemaCache
from .parser import parse_quest
from .serializer import serialize_quest, refresh_raw_text
from .templates import StateTemplateData, TemplateLibrary, parse_state_template, load_state_templates, StateTemplateCache
from .validation import find_dangling_gotos, find_empty_gotos, validate_quest
from .document import quest_from_dict, quest_to_dict, validate_document
from .skeletons import skeleton_names, instantiate_skeleton
from .loader import load_quest_file, save_quest_file, load_quest_directory

__all__ = [
    'QuestError', 'MalformedQuestError', 'ConfigLoadError', 'TemplateParseError',
    'QuestWarning', 'UnknownSymbolWarning', 'DanglingGotoWarning', 'DuplicateDescriptionWarning', 'EmptyGotoWarning',
    'StringParam', 'IntParam', 'QuestAction', 'QuestRule', 'QuestState', 'RandomTarget', 'RandomBlock', 'QuestData',
    'ParamInfo', 'SchemaEntry', 'Schema', 'default_schema', 'load_schema', 'SchemaCache',
    'parse_quest',
    'serialize_quest', 'refresh_raw_text',
    'StateTemplateData', 'TemplateLibrary', 'parse_state_template', 'load_state_templates', 'StateTemplateCache',
    'find_dangling_gotos', 'find_empty_gotos', 'validate_quest',
    'quest_from_dict', 'quest_to_dict', 'validate_document',
    'skeleton_names', 'instantiate_skeleton',
    'load_quest_file', 'save_quest_file', 'load_quest_directory',
]
