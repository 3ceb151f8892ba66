#!/usr/bin/env python3
"""Bootstrap a local line-hooks checkout.

Creates ``.venv``, installs the package (``--dev`` adds the test extra),
seeds ``config.yaml`` and ``.env`` from their examples and finishes with a
``line-hooks config-check`` so missing credentials show up right away.
"""

import argparse
import shutil
import subprocess
import sys
from pathlib import Path

MIN_PYTHON = (3, 11)
PROJECT_DIR = Path(__file__).resolve().parent
EXAMPLE_FILES = {"config.example.yaml": "config.yaml", ".env.example": ".env"}


def _venv_script(venv: Path, name: str) -> Path:
    if sys.platform == "win32":
        return venv / "Scripts" / f"{name}.exe"
    return venv / "bin" / name


def _seed_config() -> None:
    for example, target in EXAMPLE_FILES.items():
        source, dest = PROJECT_DIR / example, PROJECT_DIR / target
        if dest.exists():
            print(f"  keep    {target}")
        elif source.exists():
            shutil.copyfile(source, dest)
            print(f"  created {target}")


def main() -> None:
    parser = argparse.ArgumentParser(description="Install line-hooks into ./.venv")
    parser.add_argument("--dev", action="store_true", help="also install pytest tooling")
    args = parser.parse_args()

    if sys.version_info < MIN_PYTHON:
        sys.exit(f"line-hooks needs Python {'.'.join(map(str, MIN_PYTHON))}+")

    venv = PROJECT_DIR / ".venv"
    if not venv.is_dir():
        subprocess.check_call([sys.executable, "-m", "venv", str(venv)])

    pip = _venv_script(venv, "pip")
    subprocess.check_call([str(pip), "install", "--upgrade", "pip"])
    install = ["-e", ".[dev]"] if args.dev else ["."]
    subprocess.check_call([str(pip), "install", *install], cwd=PROJECT_DIR)

    _seed_config()

    cli = _venv_script(venv, "line-hooks")
    # Prints warnings for an empty channel token or API key; never fails the install
    subprocess.call([str(cli), "config-check"], cwd=PROJECT_DIR)

    print()
    print(f"Set MESSAGING_API_CHANNEL_ACCESS_TOKEN and OPENAI_API_KEY in {PROJECT_DIR / '.env'}, then run:")
    print(f"  {cli} start")


if __name__ == "__main__":
    main()
