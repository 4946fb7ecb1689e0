"""tgo report — Rich rendering of unit results.

renderer
    ``Presenter`` turns unit event sequences into Rich ``Text`` for unit
    details, grouped summaries, the coverage table and the totals line.
"""
