"""tgo data models — frozen Pydantic models and enums.

Sub-modules
-----------
events
    ``Event`` (one ``go test -json`` record), ``Key``, ``Action`` and
    ``Status`` with the explicit status <-> terminal action mapping.
outcome
    ``RunOutcome`` and ``RunCounts``, the typed result of a run.
"""
