"""tgo: compact, grouped results for ``go test``.

Runs ``go test -json``, folds its event stream into per-unit results,
prints failures as they happen and finishes with grouped summaries, an
optional coverage table and a totals line.
"""

__version__ = "0.1.0"
__description__ = "go test with compact, grouped results"

from tgo.core.driver import StreamDriver
from tgo.core.unit_store import UnitStore
from tgo.models.events import Event, Key, Status

__all__ = ["Event", "Key", "Status", "StreamDriver", "UnitStore", "__version__"]
