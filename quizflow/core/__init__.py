"""Core models shared by the graph and allocation engines."""
