"""Wayback Machine snapshot provider (CDX API)."""
