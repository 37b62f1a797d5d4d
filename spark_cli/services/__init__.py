"""Clients for remote chat services."""
