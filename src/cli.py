"""
Command-line entry points.

Usage:
    career-compass-setup            # prompts for ANTHROPIC_API_KEY, saves to ./.env
    career-compass-setup path/.env  # saves to another .env file

Leaving the key blank keeps the application on sample recommendations.
"""

import sys
from pathlib import Path

from rich.console import Console

from src.utils.credential_manager import GENERATOR_API_KEY, CredentialManager

console = Console()


def setup_credentials(env_file: Path = Path(".env")) -> int:
    """Ask for the generator key if none is configured and report the outcome."""
    manager = CredentialManager(env_file=env_file)

    existing = manager.get_generator_credential()
    if existing:
        console.print(
            f"[green][+] {GENERATOR_API_KEY} already configured: "
            f"{manager.mask_credential(existing)}[/green]"
        )
        return 0

    value = manager.setup_generator_credential()
    if value:
        console.print(
            f"[green][+] Recommendations will use {manager.mask_credential(value)}[/green]"
        )
    else:
        console.print(
            "[yellow][*] No key entered: sample recommendations will be used[/yellow]"
        )
    return 0


def main() -> None:
    env_file = Path(sys.argv[1]) if len(sys.argv) > 1 else Path(".env")
    sys.exit(setup_credentials(env_file))


if __name__ == "__main__":
    main()
