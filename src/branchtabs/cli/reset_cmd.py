"""CLI command that forgets per-repository enablement decisions."""

from __future__ import annotations

import typer

from .cli_types import ConfigOpt


def register_command(app: typer.Typer) -> None:
	"""Register the reset-repositories command with the CLI app."""

	@app.command(name="reset-repositories")
	def reset_repositories_command(config: ConfigOpt = None) -> None:
		"""Forget every Enable/Disable answer so repositories are asked about again."""
		from pathlib import Path

		from branchtabs.cli.session import build_session
		from branchtabs.utils.cli_utils import console

		session = build_session(Path.cwd(), config, interactive=False)
		removed = session.enablement.clear()
		console.print(f"Reset enablement for {removed} repositories.")
