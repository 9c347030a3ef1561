from importlib import metadata as importlib_metadata

# --------------------
# Distribution metadata
# --------------------

DISTRIBUTION_NAME = "pg-enhanced"


def get_project_name(default: str = DISTRIBUTION_NAME) -> str:
    """
    Return the installed distribution name, or `default` when the package runs from a
    source checkout that was never installed.
    """
    try:
        return importlib_metadata.metadata(DISTRIBUTION_NAME)["Name"] or default
    except importlib_metadata.PackageNotFoundError:
        return default


def get_project_version(default: str = "unknown") -> str:
    """
    Return the installed version of the distribution (used to stamp structured logs).
    """
    try:
        return importlib_metadata.version(DISTRIBUTION_NAME)
    except importlib_metadata.PackageNotFoundError:
        return default


__all__ = [
    "DISTRIBUTION_NAME",
    "get_project_name",
    "get_project_version",
]
