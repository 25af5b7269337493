"""Command-line interface for tapscope."""
