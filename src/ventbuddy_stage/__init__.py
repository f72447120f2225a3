"""Ventbuddy Stage: backend for anonymous venting with payment-gated posts."""

__version__ = "0.1.0"
