"""System Info — read-only diagnostic report for Raspberry Pi boards."""

__version__ = "0.1.0"
