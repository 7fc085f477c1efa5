"""Shared utilities: errors, message turns, tools, model clients and logging."""
