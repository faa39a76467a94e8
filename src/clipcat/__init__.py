"""clipcat: concatenate source files into the clipboard, with per-folder presets."""

__version__ = "0.1.0"
