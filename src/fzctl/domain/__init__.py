"""Domain layer - identifier grammar, forest model, moves, and history.

This layer depends only on stdlib and NetworkX.
It must never import from services, infrastructure, commands, or config.
"""
