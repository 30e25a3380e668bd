"""Pluggable backends for agonda."""
