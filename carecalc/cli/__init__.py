"""Care Calc command-line interface."""
