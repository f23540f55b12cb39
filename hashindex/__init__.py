"""Directory index with cached CRC32/MD5/SHA-1 hash checks."""

__version__ = "0.1.0"
