"""History Clone - replay version-control history into another repository."""

__version__ = "0.1.0"
