"""evsearch - batched search sessions and duplicate scans on top of Everything."""

__version__ = "0.1.0"
