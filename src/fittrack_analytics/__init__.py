"""FitTrack analytics engine.

Pure, deterministic computations over workout, personal-record, body-weight
and goal snapshots. Every UI surface and the assistant tool layer call the
same functions so they report identical numbers for identical input.
"""
