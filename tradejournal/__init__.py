"""Trading journal backend built around an incremental position accounting engine."""

__version__ = "0.1.0"
