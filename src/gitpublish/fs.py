from __future__ import annotations

import asyncio
import os
import shutil
from pathlib import Path

METADATA_DIR = ".git"


async def delete_file(path: Path) -> None:
    await asyncio.to_thread(path.unlink, missing_ok=True)


async def remove_tree(path: Path) -> bool:
    """Delete ``path`` and everything below it. Returns False if it was absent."""
    if not path.exists():
        return False
    await asyncio.to_thread(shutil.rmtree, path)
    return True


def _prune_empty_dirs(root: Path) -> list[Path]:
    removed: list[Path] = []
    for dirpath, dirnames, _ in os.walk(root, topdown=False):
        current = Path(dirpath)
        if current == root or METADATA_DIR in current.relative_to(root).parts:
            continue
        if not any(current.iterdir()):
            current.rmdir()
            removed.append(current)
    return removed


async def prune_empty_dirs(root: Path) -> list[Path]:
    """Remove every empty directory below ``root``, deepest first.

    ``root`` itself and the git metadata directory are left alone.
    """
    return await asyncio.to_thread(_prune_empty_dirs, root)


def _copy_file(source: Path, destination: Path) -> None:
    destination.parent.mkdir(parents=True, exist_ok=True)
    shutil.copy2(source, destination)


async def copy_file(source: Path, destination: Path) -> None:
    await asyncio.to_thread(_copy_file, source, destination)
