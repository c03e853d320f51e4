"""Stream the contents of ZIP archives as newline-delimited JSON blobs."""

__version__ = "0.1.0"

from zipblob_core.constraints import Constraints, load_constraints  # noqa: E402
from zipblob_core.coordinator import RunSummary, read_manifest, run  # noqa: E402
from zipblob_core.exceptions import (  # noqa: E402
    ConfigValidationError,
    CorruptArchiveError,
    ZipBlobError,
)

__all__ = [
    "__version__",
    "Constraints",
    "load_constraints",
    "RunSummary",
    "read_manifest",
    "run",
    "ZipBlobError",
    "ConfigValidationError",
    "CorruptArchiveError",
]
