"""Care Calc - billing, funding and payroll calculations for care homes."""

__version__ = "0.3.0"
