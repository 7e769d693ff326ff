"""
Infrastructure layer: HTTP, subprocess, file-system and socket adapters
"""
