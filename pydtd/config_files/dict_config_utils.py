#!/usr/bin/env python
# -*- coding: utf-8 -*-

'''
Config records in the GUI format (one dictionary per entry holding its type,
current state, options and tooltip) and the helpers that convert between that
format, JSON and clean YAML-style configs.
'''

__version__ = "0.3.0"
__status__ = "Development"
__project__ = "pydtd"
__created__ = "August 29, 2026"
__updated__ = "October 01, 2026"

# built-in modules
from typing import List, Dict, Any, get_origin, get_args, _GenericAlias
import json

ANALYSIS_PAGE = "Analysis_Page"
GENERAL_PAGE = "General_Page"
PAGES = (GENERAL_PAGE, ANALYSIS_PAGE)

PARENT_KEY = "parent_key"
TYPE_VALUE = "type_val"
CURRENT_STATE = "current_state"
HAS_OPTIONS = "has_options"
OPTIONS = "options"
IS_REQUIRED = "is_required"
SELECT_LOCATION = "select_location"
TOOLTIP = "tooltip"
EDITABLE = "editable"


def _matches_type(value, type_val) -> bool:
    # bool is an int subclass, never accept it for a number
    if isinstance(value, bool):
        return type_val is bool
    if type_val is float:
        return isinstance(value, (int, float))
    return isinstance(value, type_val)


class DictConfig():
    def __init__(
            self,
            parent_key: str,
            type_val: type = None,
            current_state=None,
            has_options: bool = False,
            options: list = None,
            is_required: bool = False,
            select_location: bool = False,
            tooltip: str = "",
            editable: bool = True,
    ):
        """ One config entry.

        Args:
            parent_key (str): Key of the entry.
            type_val (type, optional): Expected type of current_state, a plain type or List[...]. Defaults to None.
            current_state (optional): Current value. Defaults to None.
            has_options (bool, optional): Whether the value is picked from options. Defaults to False.
            options (list, optional): Allowed values. Defaults to None (no options).
            is_required (bool, optional): Defaults to False.
            select_location (bool, optional): Whether the value is a path picked from disk. Defaults to False.
            tooltip (str, optional): Help text. Defaults to "".
            editable (bool, optional): Defaults to True.

        Raises:
            ValueError: If current_state does not have type type_val, or is not one of the options.
        """
        if options is None:
            options = []
        if type_val is not None:
            if get_origin(type_val) == list:
                (inner_type,) = get_args(type_val)
                if not isinstance(current_state, list) or not all(_matches_type(item, inner_type) for item in current_state):
                    raise ValueError(f"Current value {current_state} is not of type List[{inner_type.__name__}]")
            elif not _matches_type(current_state, type_val):
                raise ValueError(
                    f"Current value {current_state} is not of type {type_val}")
        if has_options and options and all(not isinstance(option, dict) for option in options):
            if current_state not in options:
                raise ValueError(f"Current value {current_state} is not one of {options}")
        self._dictionary_config = {
            PARENT_KEY: parent_key,
            TYPE_VALUE: type_val,
            CURRENT_STATE: current_state,
            HAS_OPTIONS: has_options,
            OPTIONS: options,
            IS_REQUIRED: is_required,
            SELECT_LOCATION: select_location,
            TOOLTIP: tooltip,
            EDITABLE: editable,
        }

    def get_config(self):
        return self._dictionary_config


def current_state_of_key(dictionary: dict, key: str):
    return dictionary[key][CURRENT_STATE]


class CustomEncoder(json.JSONEncoder):
    def default(self, obj):
        if isinstance(obj, type):
            return {'__type__': obj.__name__}  # Store the type's name
        if isinstance(obj, _GenericAlias):  # Handle typing generics
            return {'__type__': str(obj).replace('typing.', '')}

        return super().default(obj)


# Define a safe mapping of recognized base types
type_mapping = {
    'int': int,
    'float': float,
    'str': str,
    'list': list,
    'dict': dict,
    'bool': bool,
    'NoneType': type(None),
}


def custom_decoder(obj):
    if '__type__' in obj:
        type_name = obj['__type__']

        # Check if it matches a basic type
        if type_name in type_mapping:
            return type_mapping[type_name]

        if type_name.startswith('List['):  # Handle List generics
            inner_type_name = type_name[type_name.index('[') + 1:type_name.index(']')]
            if inner_type_name in type_mapping:
                return List[type_mapping[inner_type_name]]

        elif type_name.startswith('Dict['):  # Handle Dict generics
            key_value_type = type_name[type_name.index('[') + 1:type_name.index(']')]
            key_type_name, value_type_name = key_value_type.split(', ')
            if key_type_name in type_mapping and value_type_name in type_mapping:
                return Dict[type_mapping[key_type_name], type_mapping[value_type_name]]

        # If the type is not recognized, return the object unchanged
    return obj


def convert_to_dictconfig(saved_config: Dict[str, Any]) -> Dict[str, DictConfig]:
    """Rebuild DictConfig objects from their saved dictionaries (e.g. after json.load with custom_decoder)."""
    def recursive_convert(config: Dict[str, Any]) -> DictConfig:
        has_options = config.get(HAS_OPTIONS, False)
        options = config.get(OPTIONS, [])
        if has_options and isinstance(options, list):
            options = [
                {k: recursive_convert(v).get_config() for k, v in option.items()} if isinstance(option, dict) else option
                for option in options
            ]

        return DictConfig(
            parent_key=config.get(PARENT_KEY),
            type_val=config.get(TYPE_VALUE),
            current_state=config.get(CURRENT_STATE),
            has_options=has_options,
            options=options,
            is_required=config.get(IS_REQUIRED, False),
            select_location=config.get(SELECT_LOCATION, False),
            tooltip=config.get(TOOLTIP, ''),
            editable=config.get(EDITABLE, True),
        )

    return {key: recursive_convert(value) for key, value in saved_config.items()}


def is_clean_config(config) -> bool:
    """ Return True if config looks like a clean YAML/run-config (primitive leaves),
    False if it already contains GUI DictConfig metadata (CURRENT_STATE or parent_key entries).
    """
    if not isinstance(config, dict):
        return True
    for page_config in config.values():
        if isinstance(page_config, dict):
            for config_value in page_config.values():
                if isinstance(config_value, dict):
                    if CURRENT_STATE in config_value:
                        return False
                    if any(k in config_value for k in (PARENT_KEY, TYPE_VALUE, TOOLTIP)):
                        return False
    return True


def convert_clean_config_to_gui_format(config: Dict[str, Any]) -> Dict[str, Any]:
    """
    Recursively wrap all leaf values in a dict with the CURRENT_STATE key.
    The pages (General_Page, Analysis_Page) themselves are not wrapped.
    """
    def _convert(obj, is_top_level=False):
        if isinstance(obj, dict):
            # Already in GUI format
            if set(obj.keys()) == {CURRENT_STATE}:
                return obj
            converted = {k: _convert(v) for k, v in obj.items()}
            if is_top_level:
                return converted
            return {CURRENT_STATE: converted}
        if isinstance(obj, list):
            # A list of primitives is one value
            if all(isinstance(item, (str, int, float, bool, type(None))) for item in obj):
                return {CURRENT_STATE: obj}
            return [_convert(item) for item in obj]
        return {CURRENT_STATE: obj}

    return {k: _convert(v, is_top_level=True) for k, v in config.items()}


def extract_current_state(config_dict: dict) -> dict:
    """
    Recursively extract the 'current_state' values from a GUI-format config
    to create a clean dictionary suitable for YAML serialization.
    """
    clean_dict = {}
    for key, value in config_dict.items():
        if isinstance(value, dict):
            if CURRENT_STATE in value:
                current_state = value[CURRENT_STATE]
                if isinstance(current_state, dict):
                    clean_dict[key] = extract_current_state(current_state)
                else:
                    clean_dict[key] = current_state
            else:
                clean_dict[key] = extract_current_state(value)
        else:
            clean_dict[key] = value
    return clean_dict
