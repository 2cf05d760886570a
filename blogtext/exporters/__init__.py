"""Export formats for extracted posts."""

from .csv_export import export_csv, to_csv
from .json_export import export_json, to_json

__all__ = ["export_csv", "export_json", "to_csv", "to_json"]
