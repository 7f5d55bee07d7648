#!/usr/bin/env python3

"""Parsing services for DWARF debug information."""

from .location_parser import parse_static_address
from .type_size_resolver import TypeSizeResolver

__all__ = [
    "TypeSizeResolver",
    "parse_static_address",
]
