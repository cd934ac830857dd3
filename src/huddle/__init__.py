"""Huddle: tier-balanced team generation and round ledger for pickup games."""

__version__ = "0.1.0"
