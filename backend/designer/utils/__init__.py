"""
Utility modules for the Altinn Studio Designer API.
"""

from designer.utils.file_names import as_file_name, as_path_segment, model_name_from_path
from designer.utils.json_io import dump_json
from designer.utils.xsd_mapping import XSD_TO_JSON_TYPE

__all__ = [
    "XSD_TO_JSON_TYPE",
    "as_file_name",
    "as_path_segment",
    "dump_json",
    "model_name_from_path",
]
