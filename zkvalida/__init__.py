"""Trace tables, bus interactions and constraint checks for the chips of a STARK-friendly virtual machine."""

__version__ = "0.1.0"