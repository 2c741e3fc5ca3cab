"""Run external security scanners over a project and report their findings in one place."""

__version__ = "0.1.0"