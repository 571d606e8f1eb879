"""Data models for History Clone."""

from .commit import CommitDetail, CommitRecord
from .options import CloneOptions, CloneResult

__all__ = ["CommitRecord", "CommitDetail", "CloneOptions", "CloneResult"]
