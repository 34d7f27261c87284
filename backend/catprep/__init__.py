"""CAT Prep - timed assessment backend."""

__version__ = "0.1.0"
