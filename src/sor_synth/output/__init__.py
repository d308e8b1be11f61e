"""
Output module for writing entity rows to CSV files and reading them back.
"""

from sor_synth.output.writer import CSVWriter, load_entity_data

__all__ = [
    "CSVWriter",
    "load_entity_data",
]
