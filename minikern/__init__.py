"""Core pieces of a small teaching kernel: formatting, console, memory frames, ext2, sync, processes and configuration."""

__version__ = "0.1.0"