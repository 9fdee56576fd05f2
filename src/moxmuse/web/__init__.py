"""MoxMuse - Web surface."""
