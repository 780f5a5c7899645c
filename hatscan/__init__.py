"""Byte-signature pattern scanning for binary data, with PE image, memory map and vtable helpers."""

__version__ = "0.6.0"