"""Mesh loading and frame export."""
