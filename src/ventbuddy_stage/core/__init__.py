"""Core configuration for Ventbuddy Stage."""
