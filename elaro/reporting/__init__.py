"""
elaro.reporting — output shaping for the CLI.

Turns engine results (suggestions, signal snapshots, weekly analyses,
summaries) into terminal text or JSON-ready dicts. Never queries the store.

Modules:
  formatters — ASCII terminal formatters for Typer CLI commands.
  export     — dict converters for ``--json`` output and JSON file export.
"""
