"""
jyugemu - command-history logger for interactive shell sessions.

jyugemu launches a monitored subshell and records every command you run in
it (timestamp, user, command line, exit code, working directory) to a local
JSON history file. The history file is written atomically and guarded by an
advisory lock file so several shells can log to it at once.

Package layout (src/jyugemu/):
  core/         - models, config, logging, query layer, session capture
  core/store/   - persistent history store and lock-file protocol
  cli/          - Click CLI entry point
"""

__version__ = "0.1.0"
__all__ = ["__version__"]
