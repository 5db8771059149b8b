"""Copies tool output from disk into the virtual filesystem."""

import logging
import os
from typing import List

from decompile_tools.constants import VIRTUAL_FS_SCHEME
from decompile_tools.errors import StagingIO
from decompile_tools.vfs import VirtualFileSystem, VirtualFileSystemError, to_virtual_uri

logger = logging.getLogger(__name__)


def _raise(error: OSError) -> None:
    raise error


class OutputStager:
    """Materializes a file or a directory tree under ``<root>/<anchor>``.

    For trees, the source directory itself maps to the anchor directory and
    every nested directory gets one ``create_directory`` call, always before
    any file inside it is written. Existing virtual files are overwritten.
    """

    def __init__(self, vfs: VirtualFileSystem, scheme: str = VIRTUAL_FS_SCHEME):
        self.vfs = vfs
        self.scheme = scheme

    @property
    def root(self) -> str:
        return to_virtual_uri(self.scheme)

    def uri(self, *parts: str) -> str:
        return to_virtual_uri(self.scheme, *parts)

    def stage(self, virtual_root: str, anchor: str, source_dir: str) -> List[str]:
        """Copy ``source_dir`` recursively; returns the URIs of written files."""
        anchor_uri = self._join(virtual_root, anchor)
        written = []
        directories = 1

        try:
            self.vfs.create_directory(anchor_uri)
            for dirpath, dirnames, filenames in os.walk(source_dir, onerror=_raise):
                dirnames.sort()
                relative_dir = os.path.relpath(dirpath, source_dir)
                if relative_dir == os.curdir:
                    relative_dir = ""
                for dirname in dirnames:
                    self.vfs.create_directory(
                        self._join(anchor_uri, os.path.join(relative_dir, dirname))
                    )
                    directories += 1
                for filename in sorted(filenames):
                    with open(os.path.join(dirpath, filename), "rb") as f:
                        content = f.read()
                    file_uri = self._join(anchor_uri, os.path.join(relative_dir, filename))
                    self.vfs.write_file(file_uri, content, create=True, overwrite=True)
                    written.append(file_uri)
        except (OSError, VirtualFileSystemError) as e:
            raise StagingIO(f"Failed to stage {source_dir} into {anchor_uri}: {e}") from e

        logger.info(
            f"Staged {len(written)} files in {directories} directories into {anchor_uri}"
        )
        return written

    def write(self, virtual_root: str, name: str, content: bytes) -> str:
        """Write a single file directly under the virtual root."""
        file_uri = self._join(virtual_root, name)
        try:
            self.vfs.write_file(file_uri, content, create=True, overwrite=True)
        except (OSError, VirtualFileSystemError) as e:
            raise StagingIO(f"Failed to write {file_uri}: {e}") from e
        return file_uri

    def _join(self, base_uri: str, relative: str) -> str:
        scheme, sep, base_path = base_uri.partition(":")
        if not sep:
            scheme, base_path = self.scheme, base_uri
        # Windows paths must not leak backslashes into virtual paths
        return to_virtual_uri(scheme, base_path, relative.replace(os.sep, "/"))
