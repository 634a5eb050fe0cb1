"""Run ffmpeg over many media files in parallel, with a progress bar and a run log."""

__version__ = "1.1.2"
__all__ = ["cli", "logger", "progress"]