"""Core streaming machinery: decoding, assembly, delivery, and control."""
