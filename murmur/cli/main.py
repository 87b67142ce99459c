"""Main CLI command group for murmur."""

from __future__ import annotations

import click

import murmur


@click.group()
@click.version_option(version=murmur.__version__, prog_name="murmur")
def cli() -> None:
    """murmur — local speech-to-text."""
