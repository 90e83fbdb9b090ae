"""modgraph — resolved Go module dependency graphs."""

__version__ = "0.1.0"
