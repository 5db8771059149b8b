"""Virtual filesystem capability.

The engine only ever creates directories and writes files, addressed by
``<scheme>:/<path>`` URIs. Hosts plug in their own implementation;
:class:`MemoryFileSystem` is the default and the one the CLI exports from.
"""

import os
import posixpath
from abc import ABC, abstractmethod
from typing import Dict, List, Set, Tuple

from decompile_tools.constants import VIRTUAL_FS_SCHEME


class VirtualFileSystemError(Exception):
    """A host filesystem refused an operation."""


def normalize_virtual_path(path: str) -> str:
    """Forward slashes only, no duplicate separators, always absolute."""
    path = path.replace("\\", "/")
    return posixpath.normpath("/" + path.lstrip("/"))


def to_virtual_uri(scheme: str, *parts: str) -> str:
    joined = "/".join(part.replace("\\", "/").strip("/") for part in parts if part not in ("", "."))
    return f"{scheme}:{normalize_virtual_path(joined)}"


def split_virtual_uri(uri: str) -> Tuple[str, str]:
    scheme, sep, path = uri.partition(":")
    if not sep:
        raise VirtualFileSystemError(f"Not a virtual URI: {uri}")
    return scheme, normalize_virtual_path(path)


class VirtualFileSystem(ABC):
    """The two operations the engine needs from a host filesystem."""

    @abstractmethod
    def create_directory(self, uri: str) -> None:
        pass

    @abstractmethod
    def write_file(self, uri: str, content: bytes, create: bool = True, overwrite: bool = True) -> None:
        pass


class MemoryFileSystem(VirtualFileSystem):
    """In-memory tree.

    Like an editor's memory filesystem, a directory or file can only be
    created inside an existing directory. Every call is recorded in
    ``operations`` as ``(name, uri)``.
    """

    def __init__(self, scheme: str = VIRTUAL_FS_SCHEME):
        self.scheme = scheme
        self.directories: Set[str] = {"/"}
        self.files: Dict[str, bytes] = {}
        self.operations: List[Tuple[str, str]] = []

    def _path(self, uri: str) -> str:
        scheme, path = split_virtual_uri(uri)
        if scheme != self.scheme:
            raise VirtualFileSystemError(f"Unsupported scheme '{scheme}' in {uri}")
        return path

    def _require_parent(self, path: str) -> None:
        parent = posixpath.dirname(path)
        if parent not in self.directories:
            raise FileNotFoundError(f"Parent directory does not exist: {parent}")

    def create_directory(self, uri: str) -> None:
        self.operations.append(("create_directory", uri))
        path = self._path(uri)
        if path in self.files:
            raise FileExistsError(f"A file already exists at {path}")
        if path == "/":
            return
        self._require_parent(path)
        self.directories.add(path)

    def write_file(self, uri: str, content: bytes, create: bool = True, overwrite: bool = True) -> None:
        self.operations.append(("write_file", uri))
        path = self._path(uri)
        if path in self.directories:
            raise IsADirectoryError(f"Is a directory: {path}")
        exists = path in self.files
        if not exists and not create:
            raise FileNotFoundError(f"File does not exist: {path}")
        if exists and not overwrite:
            raise FileExistsError(f"File already exists: {path}")
        self._require_parent(path)
        self.files[path] = bytes(content)

    def read_file(self, uri: str) -> bytes:
        path = self._path(uri)
        if path not in self.files:
            raise FileNotFoundError(f"File does not exist: {path}")
        return self.files[path]

    def exists(self, uri: str) -> bool:
        path = self._path(uri)
        return path in self.files or path in self.directories

    def is_empty(self, uri: str) -> bool:
        """True for a missing entry, an empty file, or a directory with no files below it."""
        path = self._path(uri)
        if path in self.files:
            return not self.files[path]
        return not self.list_files(uri)

    def list_files(self, uri: str) -> List[str]:
        """URIs of every file at or below ``uri``, sorted."""
        path = self._path(uri)
        prefix = path.rstrip("/") + "/"
        return sorted(
            to_virtual_uri(self.scheme, file_path)
            for file_path in self.files
            if file_path == path or file_path.startswith(prefix)
        )

    def export(self, uri: str, destination: str) -> List[str]:
        """Mirror the tree at ``uri`` onto disk below ``destination``."""
        root = self._path(uri)
        base = posixpath.dirname(root) if root in self.files else root
        written = []
        for file_uri in self.list_files(uri):
            file_path = self._path(file_uri)
            relative = posixpath.relpath(file_path, base)
            target = os.path.join(destination, *relative.split("/"))
            os.makedirs(os.path.dirname(target), exist_ok=True)
            with open(target, "wb") as f:
                f.write(self.files[file_path])
            written.append(target)
        return written
