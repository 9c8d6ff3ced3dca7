"""Position accounting engine for simulated leveraged trading."""

__version__ = "0.1.0"
