"""Services built on top of the client and the disc store."""

from cddbkit.services.importer import ImportStats, import_directory, load_record_file
from cddbkit.services.submit import DiscSubmitter

__all__ = [
    "DiscSubmitter",
    "ImportStats",
    "import_directory",
    "load_record_file",
]
