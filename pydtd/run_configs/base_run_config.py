#!/usr/bin/env python
# -*- coding: utf-8 -*-

'''
This is the file that holds the parent class for all run configs
'''

__version__ = "0.3.0"
__status__ = "Development"
__project__ = "pydtd"
__created__ = "August 30, 2026"
__updated__ = "October 03, 2026"

# built-in modules
from abc import ABC, abstractmethod
from typing import Any, Optional
import os
import json

# third-party modules
import matplotlib.pyplot as plt
import yaml

# project modules
from pydtd.config_files.dict_config_utils import (
    GENERAL_PAGE, ANALYSIS_PAGE, CURRENT_STATE, CustomEncoder, custom_decoder,
    convert_clean_config_to_gui_format, extract_current_state, is_clean_config
)
from pydtd.config_files.config_dictionaries import (
    dict_config_general, REFERENCE_FILE, MIXTURES_FILE, TRUTH_FILE, DELIMITER, OUTPUT_DIRECTORY,
    FISTA_CONFIGS, MAX_ITERATIONS, STOP_THRESHOLD, INITIAL_STEP_SIZE, LINE_SEARCH_SPEED,
    LINE_SEARCH_CYCLES, USE_RESTART, VERBOSE, NORMALIZATION, NUMBER_OF_WORKERS, START_VALUE,
    PROJECT_NAME, SAVE_G_PATH_PLOT, NUMBER_OF_PANELS
)
from pydtd.core_functionality.data_processing import DataProcessingCSV
from pydtd.core_functionality.fista import FistaConfig
from pydtd.core_functionality.g_path import plot_g_path

YAML_EXTENSIONS = ('.yaml', '.yml')
JSON_EXTENSION = '.json'


def get_current_state(page_config: dict, key: str, defaults: dict) -> Any:
    """Current state of key in page_config, or the default's current state when the key is missing."""
    if key in page_config and isinstance(page_config[key], dict) and CURRENT_STATE in page_config[key]:
        return page_config[key][CURRENT_STATE]
    if key in defaults:
        return defaults[key][CURRENT_STATE]
    raise KeyError(key)


class BaseRunConfig(ABC):
    def __init__(self, dict_config) -> None:
        self._dict_config = dict_config
        self.general_page_config = dict_config[GENERAL_PAGE]
        self.analysis_page_config = dict_config.get(ANALYSIS_PAGE, {})
        self.data: Optional[DataProcessingCSV] = None

    @abstractmethod
    def perform_analysis(self):
        pass

    @property
    def dict_config(self) -> dict:
        return self._dict_config

    def _general_state(self, key: str) -> Any:
        return get_current_state(self.general_page_config, key, dict_config_general)

    def load_data(self) -> DataProcessingCSV:
        """ Read X, Y and C from the files named on the general page.

        Raises:
            DataError: If a file is missing, unreadable or its labels do not line up.
        """
        truth_file = self._general_state(TRUTH_FILE)
        self.data = DataProcessingCSV(
            reference_file=self._general_state(REFERENCE_FILE),
            mixtures_file=self._general_state(MIXTURES_FILE),
            truth_file=truth_file if truth_file else None,
            delimiter=self._general_state(DELIMITER),
        )
        return self.data

    @property
    def output_directory(self) -> str:
        return self._general_state(OUTPUT_DIRECTORY)

    def _start_value(self, defaults: dict):
        start_value = get_current_state(self.analysis_page_config, START_VALUE, defaults)
        return list(start_value) if start_value else None

    def _fista_config(self, defaults: dict) -> FistaConfig:
        """ Build the FistaConfig from the FISTA configs entry of the analysis page.

        Raises:
            InvalidArgument: If a setting is out of range.
        """
        fista_defaults = defaults[FISTA_CONFIGS][CURRENT_STATE]
        fista_page = get_current_state(self.analysis_page_config, FISTA_CONFIGS, defaults)

        def state(key):
            return get_current_state(fista_page, key, fista_defaults)

        # PyYAML reads exponent floats without a dot (1e-13) as strings
        initial_step_size = float(state(INITIAL_STEP_SIZE))
        return FistaConfig(
            max_iterations=state(MAX_ITERATIONS),
            stop_threshold=float(state(STOP_THRESHOLD)),
            initial_step_size=None if initial_step_size <= 0 else initial_step_size,
            line_search_speed=float(state(LINE_SEARCH_SPEED)),
            line_search_cycles=state(LINE_SEARCH_CYCLES),
            use_restart=state(USE_RESTART),
            verbose=state(VERBOSE),
            normalization=state(NORMALIZATION),
            n_workers=state(NUMBER_OF_WORKERS),
        )

    def _save_g_path_plot(self, model, defaults: dict) -> Optional[str]:
        """ Save the g path plot of model as <project name>_g_path.png in the output directory, if requested.

        Returns:
            Optional[str]: Path of the saved figure, None if no plot was requested.
        """
        if not get_current_state(self.analysis_page_config, SAVE_G_PATH_PLOT, defaults):
            return None
        project_name = self._general_state(PROJECT_NAME) or "project"
        fig_path = os.path.join(self.output_directory, f"{project_name}_g_path.png")
        fig = plot_g_path(model, number_pics=get_current_state(self.analysis_page_config, NUMBER_OF_PANELS, defaults))
        fig.savefig(fig_path, dpi=150, bbox_inches="tight")
        plt.close(fig)
        print(f"g path plot saved to {fig_path}")
        return fig_path

    def write_yaml_config(self, output_path: str) -> None:
        """
        Writes the current configuration to a clean YAML file.

        Parameters:
        output_path (str): The path where the YAML file will be saved.
        """
        clean_config = extract_current_state(self._dict_config)
        with open(output_path, 'w') as file:
            yaml.dump(clean_config, file, default_flow_style=False, sort_keys=False)

    def write_json_config(self, output_path: str) -> None:
        """
        Writes the current configuration to a JSON file.
        This preserves the full DictConfig structure for GUI compatibility.

        Parameters:
        output_path (str): The path where the JSON file will be saved.
        """
        with open(output_path, 'w') as file:
            json.dump(self._dict_config, file, indent=2, ensure_ascii=False, cls=CustomEncoder)

    def write_json_clean(self, output_path: str) -> None:
        """
        Writes a clean JSON configuration (similar to YAML format).

        Parameters:
        output_path (str): The path where the clean JSON file will be saved.
        """
        clean_config = extract_current_state(self._dict_config)
        with open(output_path, 'w') as file:
            json.dump(clean_config, file, indent=2, ensure_ascii=False)

    def write_config(self, output_path: str) -> None:
        """
        Writes the current configuration to a file. Format is determined by file extension.

        Parameters:
        output_path (str): The path where the config file will be saved (.yaml/.yml or .json).
        """
        file_ext = os.path.splitext(output_path)[1].lower()

        if file_ext in YAML_EXTENSIONS:
            self.write_yaml_config(output_path)
        elif file_ext == JSON_EXTENSION:
            self.write_json_config(output_path)
        else:
            raise ValueError(f"Unsupported file extension: {file_ext}. Use .yaml, .yml, or .json")

    @staticmethod
    def read_config_file(file_path: str) -> dict:
        """
        Reads a YAML or JSON configuration file and returns it in GUI format.
        Clean configs (plain values) are wrapped with current_state entries.

        Parameters:
        file_path (str): The path to the configuration file (.yaml/.yml or .json).

        Returns:
        dict: The configuration in GUI format.
        """
        file_ext = os.path.splitext(file_path)[1].lower()

        if file_ext in YAML_EXTENSIONS:
            with open(file_path, 'r') as file:
                config = yaml.safe_load(file)
        elif file_ext == JSON_EXTENSION:
            with open(file_path, 'r') as file:
                config = json.load(file, object_hook=custom_decoder)
        else:
            raise ValueError(f"Unsupported file extension: {file_ext}. Use .yaml, .yml, or .json")

        if not isinstance(config, dict) or GENERAL_PAGE not in config:
            raise ValueError(f"{file_path} does not contain a '{GENERAL_PAGE}' section")
        if is_clean_config(config):
            config = convert_clean_config_to_gui_format(config)
        return config

    @classmethod
    def from_file(cls, file_path: str):
        """
        Creates a run config instance from a configuration file (YAML or JSON).
        Format is automatically detected by file extension.

        Parameters:
        file_path (str): The path to the configuration file (.yaml/.yml or .json).

        Returns:
        BaseRunConfig: An instance of the run config class.
        """
        return cls(cls.read_config_file(file_path))
