"""Scanners, JSON path queries, flow-grid layout, MPD session state and handler registry for a status bar."""

__version__ = "0.1.0"
__all__ = ["misc", "jpath", "scanner", "flowgrid", "mpd", "signals", "handlers"]