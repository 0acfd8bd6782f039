"""Command-line entry point for running the Jira user client from a checkout."""

from __future__ import annotations

from jiraclient.cli import main


if __name__ == "__main__":
    main()
