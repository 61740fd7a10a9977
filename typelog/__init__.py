"""
typelog - replay the typing history of a note

Reconstructs what a document looked like at any moment from its sparse
text and cursor logs, and plays that history back:
- Logarithmic-time "state at time T" lookups over both logs
- Seekable, speed-adjustable playback clock
- Non-destructive replay that restores the live editor when stopped
"""

__version__ = "0.1.0"
