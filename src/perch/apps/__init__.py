"""Filesystem-backed resources: FileTree and App."""
