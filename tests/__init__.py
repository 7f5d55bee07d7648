"""Test suite for the DWARF globals auditor."""
