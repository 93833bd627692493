"""Shared argument and option annotations for BranchTabs commands."""

from pathlib import Path
from typing import Annotated

import typer

RepoPathArg = Annotated[
	Path | None,
	typer.Argument(
		help="Path inside the repository (defaults to the current directory).",
		exists=True,
		resolve_path=True,
	),
]

ConfigOpt = Annotated[
	Path | None,
	typer.Option(
		"--config",
		"-c",
		help="Path to an extra configuration file.",
		exists=True,
		dir_okay=False,
	),
]

NoInputFlag = Annotated[
	bool,
	typer.Option("--no-input", help="Never ask questions; oversized passes open up to the limit."),
]
