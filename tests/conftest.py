import os

# histogram rendering must not need a display
os.environ.setdefault("MPLBACKEND", "Agg")
