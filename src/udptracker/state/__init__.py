"""State/store layer.

The single source of truth for how the initial HTTP fetch, the live
snapshot and live updates are merged into one tracker view state.
"""
