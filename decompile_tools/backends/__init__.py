"""Decompiler backends. Importing this package registers all of them."""

from decompile_tools.backends.dex2jar import Dex2JarBackend
from decompile_tools.backends.ghidra import GhidraBackend
from decompile_tools.backends.ida import IdaBackend, toggle_word_size
from decompile_tools.backends.jadx import JadxBackend
from decompile_tools.backends.jdcli import JdCliBackend

__all__ = [
    "Dex2JarBackend",
    "GhidraBackend",
    "IdaBackend",
    "JadxBackend",
    "JdCliBackend",
    "toggle_word_size",
]
