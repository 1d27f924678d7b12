"""Conversational fashion stylist engine."""
