"""RaiWave voice enhancement and remix engine."""

__version__ = "0.1.0"
