"""SOCKS5 proxy with username/password authentication."""

import pathlib
import sys

if sys.version_info >= (3, 11):
    import tomllib
else:
    import tomli as tomllib

PROJECT_NAME = "socks5-auth-proxy"


def get_version() -> str:
    """Read version from this project's pyproject.toml."""
    current_dir = pathlib.Path(__file__).parent
    for parent in [current_dir, *current_dir.parents]:
        pyproject_path = parent / "pyproject.toml"
        if not pyproject_path.exists():
            continue
        with pyproject_path.open("rb") as f:
            project = tomllib.load(f).get("project", {})
        # Skip unrelated pyproject files further up the tree
        if project.get("name") == PROJECT_NAME:
            return project["version"]

    # Installed without the source tree
    return "0.0.0"


__version__ = get_version()
