"""Natural-language media editing on top of ffmpeg."""

__version__ = "0.1.0"
