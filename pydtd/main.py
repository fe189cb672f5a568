#!/usr/bin/env python
# -*- coding: utf-8 -*-

'''
Command line entry point: pydtd <config_file.yaml|json>
'''

__version__ = "0.3.0"
__status__ = "Development"
__project__ = "pydtd"
__created__ = "August 30, 2026"
__updated__ = "October 03, 2026"

# built-in modules
from typing import List, Optional
import sys

# project modules
from pydtd.core_functionality.exceptions import DTDError
from pydtd.run_configs.overall_run_config import OverallRunConfig


def main(argv: Optional[List[str]] = None) -> int:
    if argv is None:
        argv = sys.argv[1:]
    if len(argv) < 1:
        print("Usage: pydtd <config_file.yaml|json>")
        return 1

    config_path = argv[0]
    try:
        config = OverallRunConfig.read_config_file(config_path)
        run_config = OverallRunConfig(config)
        run_config.load_data()
        run_config.perform_analysis()
    except (OSError, ValueError, DTDError) as e:
        print(f"ERROR: {e}")
        return 1
    print("Analysis complete.")
    return 0


if __name__ == "__main__":
    sys.exit(main())
