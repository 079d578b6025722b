"""MIPS object-file conversion, instruction decoding, simulated memory and a teaching file system."""

__version__ = "0.1.0"