#!/usr/bin/env python
# -*- coding: utf-8 -*-

'''
Keys and default GUI-format configs of the general page and the two analysis pages.
'''

__version__ = "0.3.0"
__status__ = "Development"
__project__ = "pydtd"
__created__ = "August 29, 2026"
__updated__ = "October 01, 2026"

# built-in modules
from typing import List

# project modules
from pydtd.config_files.dict_config_utils import DictConfig


# Constants for dictionary keys
REFERENCE_FILE = "Reference file"
MIXTURES_FILE = "Mixtures file"
TRUTH_FILE = "Truth file"
DELIMITER = "Delimiter"
OUTPUT_DIRECTORY = "Output Directory"
PROJECT_NAME = "Project Name"
PROJECT_DEFAULT = "Project"
ANALYSIS_TYPE = "Analysis type"

# Constants for training
TRAINING_ANALYSIS_TYPE = "Training"
LAMBDA_TAG = "lambda"
ESTIMATOR_MODE = "Estimator mode"
DIRECT_STR = "direct"
NON_NEGATIVE_STR = "non_negative"
START_VALUE = "Start value of g"
SAVE_G_PATH_PLOT = "Save g path plot"
NUMBER_OF_PANELS = "Number of g path panels"
FISTA_CONFIGS = "FISTA configs"
MAX_ITERATIONS = "max iterations"
STOP_THRESHOLD = "stop threshold"
INITIAL_STEP_SIZE = "initial step size"
LINE_SEARCH_SPEED = "line search speed"
LINE_SEARCH_CYCLES = "line search cycles"
USE_RESTART = "use restart"
VERBOSE = "verbose"
NORMALIZATION = "normalization"
NUMBER_OF_WORKERS = "number of workers"

# Constants for cross validation
CROSS_VALIDATION_ANALYSIS_TYPE = "Cross validation"
LAMBDA_SEQUENCE = "Lambda sequence"
NUMBER_OF_FOLDS = "Number of folds"
SEED = "Seed"

# an initial step size <= 0 in a config means "estimate it"
ESTIMATE_STEP_SIZE = -1.0


def _fista_configs() -> dict:
    return DictConfig(parent_key=FISTA_CONFIGS, type_val=dict, current_state={
        MAX_ITERATIONS: DictConfig(parent_key=MAX_ITERATIONS, type_val=int, current_state=500, tooltip="maximum number of FISTA iterations").get_config(),
        STOP_THRESHOLD: DictConfig(parent_key=STOP_THRESHOLD, type_val=float, current_state=1e-13, tooltip="stop once a step and the momentum move g by less than this").get_config(),
        INITIAL_STEP_SIZE: DictConfig(parent_key=INITIAL_STEP_SIZE, type_val=float, current_state=ESTIMATE_STEP_SIZE, tooltip="first step size, -1 estimates it from the first gradient").get_config(),
        LINE_SEARCH_SPEED: DictConfig(parent_key=LINE_SEARCH_SPEED, type_val=float, current_state=2.0, tooltip="factor the step size grows or shrinks by, must be > 1").get_config(),
        LINE_SEARCH_CYCLES: DictConfig(parent_key=LINE_SEARCH_CYCLES, type_val=int, current_state=5, tooltip="number of step sizes tried per iteration").get_config(),
        USE_RESTART: DictConfig(parent_key=USE_RESTART, type_val=bool, current_state=True, tooltip="reject steps that increase the loss and reset the momentum").get_config(),
        VERBOSE: DictConfig(parent_key=VERBOSE, type_val=bool, current_state=False, tooltip="print one line per iteration").get_config(),
        NORMALIZATION: DictConfig(parent_key=NORMALIZATION, type_val=str, current_state="identity", has_options=True, options=["identity", "norm2"], tooltip="rescaling applied to g after every step").get_config(),
        NUMBER_OF_WORKERS: DictConfig(parent_key=NUMBER_OF_WORKERS, type_val=int, current_state=1, tooltip="threads used for the line search").get_config(),
    }, is_required=True, select_location=False, tooltip="settings of the FISTA optimizer").get_config()


dict_config_general = {
    REFERENCE_FILE: DictConfig(parent_key=REFERENCE_FILE, type_val=str, current_state="", is_required=True, select_location=True, tooltip="CSV with features as rows and cell types as columns").get_config(),
    MIXTURES_FILE: DictConfig(parent_key=MIXTURES_FILE, type_val=str, current_state="", is_required=True, select_location=True, tooltip="CSV with features as rows and samples as columns").get_config(),
    TRUTH_FILE: DictConfig(parent_key=TRUTH_FILE, type_val=str, current_state="", is_required=True, select_location=True, tooltip="CSV with cell types as rows and samples as columns").get_config(),
    DELIMITER: DictConfig(parent_key=DELIMITER, type_val=str, current_state=",", is_required=False, select_location=False, tooltip="field separator of the CSV files").get_config(),
    OUTPUT_DIRECTORY: DictConfig(parent_key=OUTPUT_DIRECTORY, type_val=str, current_state="", is_required=True, select_location=True, tooltip="output directory for plots and the project file").get_config(),
    PROJECT_NAME: DictConfig(parent_key=PROJECT_NAME, type_val=str, current_state=PROJECT_DEFAULT, is_required=True, select_location=False, tooltip="The name of the project save file.").get_config(),
}

dict_config_training = {
    ANALYSIS_TYPE: DictConfig(parent_key=ANALYSIS_TYPE, type_val=str, current_state=TRAINING_ANALYSIS_TYPE, is_required=True, select_location=False, tooltip="analysis type", editable=False).get_config(),
    LAMBDA_TAG: DictConfig(parent_key=LAMBDA_TAG, type_val=float, current_state=0.0, is_required=True, select_location=False, tooltip="L1 penalty on g").get_config(),
    ESTIMATOR_MODE: DictConfig(parent_key=ESTIMATOR_MODE, type_val=str, current_state=DIRECT_STR, is_required=True, has_options=True, options=[DIRECT_STR, NON_NEGATIVE_STR], tooltip="estimator of the composition, 'direct' or 'non_negative'").get_config(),
    START_VALUE: DictConfig(parent_key=START_VALUE, type_val=List[float], current_state=[], is_required=False, tooltip="start value of g, empty for all ones").get_config(),
    FISTA_CONFIGS: _fista_configs(),
    SAVE_G_PATH_PLOT: DictConfig(parent_key=SAVE_G_PATH_PLOT, type_val=bool, current_state=False, is_required=False, tooltip="save the g path plot to the output directory").get_config(),
    NUMBER_OF_PANELS: DictConfig(parent_key=NUMBER_OF_PANELS, type_val=int, current_state=3, is_required=False, tooltip="number of quantile panels of the g path plot").get_config(),
}

dict_config_cross_validation = {
    ANALYSIS_TYPE: DictConfig(parent_key=ANALYSIS_TYPE, type_val=str, current_state=CROSS_VALIDATION_ANALYSIS_TYPE, is_required=True, select_location=False, tooltip="analysis type", editable=False).get_config(),
    LAMBDA_SEQUENCE: DictConfig(parent_key=LAMBDA_SEQUENCE, type_val=List[float], current_state=[], is_required=False, tooltip="penalties to try, empty for the default grid").get_config(),
    NUMBER_OF_FOLDS: DictConfig(parent_key=NUMBER_OF_FOLDS, type_val=int, current_state=5, is_required=True, tooltip="number of cross validation folds").get_config(),
    SEED: DictConfig(parent_key=SEED, type_val=int, current_state=-1, is_required=False, tooltip="seed of the fold assignment, -1 for a random one").get_config(),
    ESTIMATOR_MODE: DictConfig(parent_key=ESTIMATOR_MODE, type_val=str, current_state=DIRECT_STR, is_required=True, has_options=True, options=[DIRECT_STR, NON_NEGATIVE_STR], tooltip="estimator of the composition, 'direct' or 'non_negative'").get_config(),
    START_VALUE: DictConfig(parent_key=START_VALUE, type_val=List[float], current_state=[], is_required=False, tooltip="start value of g, empty for all ones").get_config(),
    FISTA_CONFIGS: _fista_configs(),
    SAVE_G_PATH_PLOT: DictConfig(parent_key=SAVE_G_PATH_PLOT, type_val=bool, current_state=False, is_required=False, tooltip="save the g path plot of the refit model to the output directory").get_config(),
    NUMBER_OF_PANELS: DictConfig(parent_key=NUMBER_OF_PANELS, type_val=int, current_state=3, is_required=False, tooltip="number of quantile panels of the g path plot").get_config(),
}
