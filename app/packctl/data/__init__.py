"""Bundled data files for packctl."""
