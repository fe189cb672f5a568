#!/usr/bin/env python
# -*- coding: utf-8 -*-

'''
This is the file that handles training a g vector based on a set of configurations.
'''

__version__ = "0.3.0"
__status__ = "Development"
__project__ = "pydtd"
__created__ = "August 30, 2026"
__updated__ = "October 03, 2026"

# built-in modules
from typing import Optional

# project modules
from pydtd.config_files.config_dictionaries import (
    dict_config_training, LAMBDA_TAG, ESTIMATOR_MODE
)
from pydtd.core_functionality.exceptions import DataError
from pydtd.core_functionality.fista import FistaOptimizer
from pydtd.core_functionality.training_result import TrainingResult
from pydtd.run_configs.base_run_config import BaseRunConfig, get_current_state


class TrainingRunConfig(BaseRunConfig):
    def __init__(self, dict_config) -> None:
        super().__init__(dict_config)
        self.result: Optional[TrainingResult] = None

    def perform_analysis(self) -> TrainingResult:
        """ Train g on the loaded data with the lambda and FISTA settings of the analysis page.

        Raises:
            DataError: If no truth file was given.
            InvalidArgument: If a setting is out of range.
            TrainingAborted: If the model became degenerate during training.

        Returns:
            TrainingResult: The trained model.
        """
        if self.data is None:
            self.load_data()
        if self.data.truth is None:
            raise DataError("Training needs a truth file with the composition of the mixtures")

        lambda_parameter = float(get_current_state(self.analysis_page_config, LAMBDA_TAG, dict_config_training))
        optimizer = FistaOptimizer(
            self.data.reference,
            self.data.mixtures,
            self.data.truth,
            g0=self._start_value(dict_config_training),
            lambda_parameter=lambda_parameter,
            estimator_mode=get_current_state(self.analysis_page_config, ESTIMATOR_MODE, dict_config_training),
            config=self._fista_config(dict_config_training),
            feature_names=self.data.feature_names,
        )
        self.result = optimizer.run()
        print(f"Training finished: {self.result}")
        self._save_g_path_plot(self.result, dict_config_training)
        return self.result
