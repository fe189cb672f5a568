#!/usr/bin/env python
# -*- coding: utf-8 -*-

'''
This is the file that handles running all the configs based on what is provided
'''

__version__ = "0.3.0"
__status__ = "Development"
__project__ = "pydtd"
__created__ = "August 30, 2026"
__updated__ = "October 03, 2026"

# built-in modules
import os
import json

# project modules
from pydtd.run_configs.base_run_config import BaseRunConfig
from pydtd.run_configs.training_run_config import TrainingRunConfig
from pydtd.run_configs.cross_validation_run_config import CrossValidationRunConfig
from pydtd.config_files.config_dictionaries import (
    ANALYSIS_TYPE, TRAINING_ANALYSIS_TYPE, CROSS_VALIDATION_ANALYSIS_TYPE, OUTPUT_DIRECTORY, PROJECT_NAME
)
from pydtd.config_files.dict_config_utils import CURRENT_STATE, CustomEncoder

RUN_CONFIGS = {
    TRAINING_ANALYSIS_TYPE: TrainingRunConfig,
    CROSS_VALIDATION_ANALYSIS_TYPE: CrossValidationRunConfig,
}


class OverallRunConfig(BaseRunConfig):
    def __init__(self, dict_config) -> None:
        """ Picks the run config that matches the analysis type of the config.

        Raises:
            ValueError: If the analysis page has no analysis type or an unknown one.
        """
        super().__init__(dict_config)

        if ANALYSIS_TYPE not in self.analysis_page_config:
            raise ValueError(f"The analysis page has no '{ANALYSIS_TYPE}' entry")
        config_type = self.analysis_page_config[ANALYSIS_TYPE][CURRENT_STATE]
        if config_type not in RUN_CONFIGS:
            raise ValueError(
                f"The analysis type '{config_type}' does not have an implementation, use one of {list(RUN_CONFIGS)}"
            )
        self.run_config: BaseRunConfig = RUN_CONFIGS[config_type](dict_config=dict_config)
        self.project_file = self._general_state(PROJECT_NAME)

    def get_output_directory(self):
        return self._general_state(OUTPUT_DIRECTORY)

    def load_data(self):
        self.data = self.run_config.load_data()
        return self.data

    def perform_analysis(self):
        return self.run_config.perform_analysis()

    def save_config(self) -> str:
        output_directory = self.get_output_directory()
        if self.project_file != "":
            file_location = os.path.join(output_directory, self.project_file)
        else:
            file_location = os.path.join(output_directory, "project.json")

        if not file_location.endswith(".json"):
            file_location += ".json"

        with open(file_location, 'w') as json_file:
            json.dump(self._dict_config, json_file, cls=CustomEncoder, indent=4)
        print(f"Configuration saved to {file_location}")
        return file_location
