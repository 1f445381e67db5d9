"""
Large Interest Model (LIM) orchestration package.

Generates interest-driven place recommendations by sending versioned prompt
templates to one of several hosted text-generation providers, recording every
call in a structured telemetry sink, and refreshing a persisted catalog in a
batch pipeline.

Key components:
- core/: Types, exceptions, settings and logging utilities
- templates/: Prompt template catalog, rendering and response validation
- providers/: Provider adapters and the gateway that dispatches to them
- telemetry/: Structured log sink with tiered retention and archival
- pipeline/: Batch refresh over the location x interest key space
- storage/: Record persistence (JSON files, SQLite, SQL Server)
- service/: One-off request serving with a response cache
- cli/: Command line entry points
"""

__version__ = "0.1.0"
