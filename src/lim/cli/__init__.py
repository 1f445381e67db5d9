"""
LIM CLI Module.

Provides command-line tools for:
- The scheduled recommendation refresh (lim-refresh)
- Reading stored telemetry (lim-logs)
"""
