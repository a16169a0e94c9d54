"""Caller-side feature providers, driving loops and the edanet CLI."""
