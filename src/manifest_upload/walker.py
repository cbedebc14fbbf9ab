"""Walk a local tree and yield the regular files to upload."""

import os
import stat
from dataclasses import dataclass
from pathlib import Path
from typing import Iterator

from manifest_upload.exceptions import TraversalError


@dataclass(frozen=True)
class FileEntry:
    path: Path
    relative_path: str


def _traversal_error(path, error: OSError) -> TraversalError:
    return TraversalError(f"Cannot read {path}: {error.strerror or error}", {"path": str(path)})


def walk_tree(root: Path) -> Iterator[FileEntry]:
    """
    Yield every regular file under ``root``.

    A root that is itself a regular file yields a single entry named after
    the file. For a directory, relative paths use ``/`` separators regardless
    of platform. Symbolic links, directories and special files are skipped.
    Traversal order is unspecified.

    Raises:
        TraversalError: If the root or any directory below it cannot be read
    """
    try:
        root_stat = os.stat(root)
    except OSError as e:
        raise _traversal_error(root, e) from e

    if stat.S_ISREG(root_stat.st_mode):
        yield FileEntry(path=Path(root), relative_path=Path(root).name)
        return
    if not stat.S_ISDIR(root_stat.st_mode):
        return

    pending = [Path(root)]
    while pending:
        directory = pending.pop()
        try:
            with os.scandir(directory) as entries:
                for entry in entries:
                    # Don't follow links: each entry is judged by its own type
                    if entry.is_symlink():
                        continue
                    if entry.is_dir(follow_symlinks=False):
                        pending.append(Path(entry.path))
                    elif entry.is_file(follow_symlinks=False):
                        path = Path(entry.path)
                        yield FileEntry(path=path, relative_path=path.relative_to(root).as_posix())
        except OSError as e:
            raise _traversal_error(directory, e) from e
