"""Analyzers for links, text and sender metadata."""
