"""Parsers for CASTEP output and the cell-builder interface to the modeling host."""
