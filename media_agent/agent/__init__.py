"""Agents that plan and run media edits."""
