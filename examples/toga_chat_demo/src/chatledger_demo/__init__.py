"""Toga demo host for the ChatLedger chat widget."""
