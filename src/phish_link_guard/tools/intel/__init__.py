"""Lookalike, transport, sender and reputation intelligence."""
