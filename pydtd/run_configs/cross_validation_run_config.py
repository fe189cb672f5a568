#!/usr/bin/env python
# -*- coding: utf-8 -*-

'''
This is the file that handles the lambda cross validation based on a set of configurations.
'''

__version__ = "0.3.0"
__status__ = "Development"
__project__ = "pydtd"
__created__ = "September 03, 2026"
__updated__ = "October 03, 2026"

# built-in modules
from typing import Optional

# project modules
from pydtd.config_files.config_dictionaries import (
    dict_config_cross_validation, LAMBDA_SEQUENCE, NUMBER_OF_FOLDS, SEED, ESTIMATOR_MODE
)
from pydtd.core_functionality.cross_validation import CrossValidationResult, cross_validate_lambda
from pydtd.core_functionality.exceptions import DataError
from pydtd.run_configs.base_run_config import BaseRunConfig, get_current_state


class CrossValidationRunConfig(BaseRunConfig):
    def __init__(self, dict_config) -> None:
        super().__init__(dict_config)
        self.result: Optional[CrossValidationResult] = None

    def perform_analysis(self) -> CrossValidationResult:
        if self.data is None:
            self.load_data()
        if self.data.truth is None:
            raise DataError("Cross validation needs a truth file with the composition of the mixtures")

        def state(key):
            return get_current_state(self.analysis_page_config, key, dict_config_cross_validation)

        lambda_sequence = [float(value) for value in state(LAMBDA_SEQUENCE)]
        seed = state(SEED)
        config = self._fista_config(dict_config_cross_validation)

        self.result = cross_validate_lambda(
            self.data.reference,
            self.data.mixtures,
            self.data.truth,
            g0=self._start_value(dict_config_cross_validation),
            lambda_sequence=lambda_sequence if lambda_sequence else None,
            n_folds=state(NUMBER_OF_FOLDS),
            estimator_mode=state(ESTIMATOR_MODE),
            config=config,
            seed=None if seed < 0 else seed,
            verbose=config.verbose,
        )
        print(self.result.summary_frame().to_string(index=False))
        print(f"Best lambda: {self.result.best_lambda:.6g}")
        self._save_g_path_plot(self.result, dict_config_cross_validation)
        return self.result
