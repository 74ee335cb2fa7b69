"""Karaoke lyrics: data model, format import/export, projects, settings and frame rendering."""

__version__ = "0.1.0"

__all__ = ["lyrics", "util", "recentfiles", "settings", "importers", "project", "textlayout", "renderer"]