"""Building blocks for finding duplicate files: stat checks, filters, hashing, a hash
database, and actions that print, summarize, delete, link or deduplicate duplicate sets."""

__version__ = "0.1.0"