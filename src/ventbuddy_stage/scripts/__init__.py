"""Operational scripts for Ventbuddy Stage."""
