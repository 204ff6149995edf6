"""Exelook decoders -- legacy bitmap icon decoding."""
