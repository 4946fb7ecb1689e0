"""tgo core — the event aggregation engine.

Modules
-------
unit_store
    ``UnitStore``: append-only events per unit, with filtered views and
    deterministic key ordering.
status
    Pure status derivation, coverage extraction and "no test files"
    detection.
compactor
    Display-only removal of ``go test`` banner lines.
driver
    ``StreamDriver``: the scanning / draining / terminating state machine.
supervisor
    ``GoTestProcess`` and the ``EventSource`` protocol.
cancellation
    ``CancellationToken`` and the ``SignalBridge``.
"""
