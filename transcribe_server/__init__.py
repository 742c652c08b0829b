"""
Transcribe Server Package.

Small HTTP service that relays uploaded audio to a speech-to-text
provider, stores the resulting transcripts and serves their history.
"""

from pathlib import Path


def _get_version() -> str:
    """
    Get the server version from package metadata or pyproject.toml.

    Returns:
        Version string (e.g., "0.1.0") or "dev" if unavailable
    """
    try:
        from importlib.metadata import version

        return version("transcribe-server")
    except Exception:
        pass

    # Source checkout without an install
    try:
        import tomllib

        current = Path(__file__).resolve()
        for parent in current.parents:
            potential_path = parent / "pyproject.toml"
            if potential_path.exists():
                with open(potential_path, "rb") as f:
                    data = tomllib.load(f)
                return data.get("project", {}).get("version", "dev")
    except Exception:
        pass

    return "dev"


__version__ = _get_version()
