"""Convenience entry point to encrypt the current stage's env file.

Allows running the full flow with `python main.py [NAME ...]` from the project
root. The stage comes from ENV (default dev). Any names given select the
variables to encrypt; without names every plaintext variable is encrypted.
A master key is generated first when the stage has none.
"""

from __future__ import annotations

import sys
from pathlib import Path

# Ensure the src/ directory is on sys.path so `import stagecrypt` works
ROOT = Path(__file__).resolve().parent
SRC = ROOT / "src"
if str(SRC) not in sys.path:
    sys.path.insert(0, str(SRC))

from stagecrypt.core.environment import EnvironmentSetup
from stagecrypt.core.logging_config import configure_logging
from stagecrypt.core.orchestrator import EnvironmentSecretOrchestrator
from stagecrypt.core.stage import StageResolver


def main() -> None:
    """Load the stage environment, ensure a master key, encrypt the stage file."""
    configure_logging()
    resolver = StageResolver()
    EnvironmentSetup(resolver).initialize()

    orchestrator = EnvironmentSecretOrchestrator(resolver=resolver)
    orchestrator.ensure_secret_key()

    orchestrator.encrypt_environment_variables(sys.argv[1:] or None)


if __name__ == "__main__":
    main()
