"""Exelook parsers -- file mapping, PE headers and resource structures."""
