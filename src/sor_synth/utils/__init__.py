"""
Reporting utilities.
"""

from sor_synth.utils.report import ValidationReporter

__all__ = ["ValidationReporter"]
