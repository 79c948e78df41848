# viewer_style.py
"""Colours and fonts shared by the ILBM viewer widgets."""

BG_MAIN = "#f0f2f5"
BG_TOOLBAR = "#2d3e50"
BG_PANEL = "#ffffff"
BG_BUTTON = "#3b82c4"
FG_BUTTON = "#ffffff"
FG_TEXT = "#1f2933"
FG_SUBTEXT = "#52606d"

FONT_HEADER = ("Segoe UI", 12, "bold")
FONT_TEXT = ("Segoe UI", 10)
FONT_MONO = ("Consolas", 9)
FONT_BUTTON = ("Segoe UI", 10, "bold")

IFF_FILETYPES = [("IFF images", "*.iff *.ilbm *.lbm *.ham"), ("All files", "*.*")]
