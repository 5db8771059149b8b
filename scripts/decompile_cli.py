#!/usr/bin/env python3
"""
Decompile CLI script - thin wrapper around decompile_tools.cli.
"""
import sys

import click

try:
    from decompile_tools.cli import main
except ImportError as e:
    click.echo(f"Error importing decompile_tools: {e}")
    click.echo("Please install the package with: pip install -e .")
    sys.exit(1)


if __name__ == "__main__":
    main()
