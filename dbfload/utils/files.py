"""
File system helpers used by the logging setup.
"""
from os import remove, scandir, path
from shutil import rmtree


def prune_oldest_entries(dir_path: str, n_to_keep: int) -> int:
    """
    Remove the oldest entries (files or folders) of a directory, keeping the
    `n_to_keep` most recently modified ones.

    Args:
        dir_path (str): Directory whose entries are pruned.
        n_to_keep (int): Number of most recent entries to keep.

    Returns:
        int: Number of entries removed.

    Raises:
        FileNotFoundError: If `dir_path` does not exist.
    """
    if not path.exists(dir_path):
        raise FileNotFoundError(f"Path not found: {dir_path}")

    entries = sorted(scandir(dir_path), key=lambda entry: entry.stat().st_mtime)
    stale = entries[:max(len(entries) - n_to_keep, 0)]

    removed = 0
    for entry in stale:
        if entry.is_dir(follow_symlinks=False):
            rmtree(entry.path)
        else:
            remove(entry.path)
        removed += 1
    return removed
