"""File and stream helpers that raise a descriptive error on any failure."""

from __future__ import annotations

import contextlib
import mmap
import socket
import subprocess
from typing import BinaryIO, Iterator


class CheckedIOError(OSError):
    """Raised when a file, stream or child-process operation fails."""


def _describe(stream) -> str:
    try:
        return f"fileno {stream.fileno()}"
    except (AttributeError, OSError, ValueError):
        return repr(stream)


def _offset(stream) -> str:
    try:
        return str(stream.tell())
    except (AttributeError, OSError, ValueError):
        return "unknown"


class CheckedReader:
    """Reads exact amounts from a binary stream, with one level of push-back."""

    def __init__(self, stream: BinaryIO):
        self._stream = stream
        self._unread = b""

    def _failure(self, size: int, nitems: int, eof: bool) -> str:
        items = "item" if nitems == 1 else "items"
        message = (
            f"Failed to read {nitems} {items} of size {size} bytes "
            f"from {_describe(self._stream)}!"
        )
        if eof:
            message += f" Reason: end of file (offset {_offset(self._stream)})."
        return message

    def read(self, size: int, nitems: int) -> bytes:
        """Return exactly ``size * nitems`` bytes or raise CheckedIOError."""
        wanted = size * nitems
        if self._unread:
            if len(self._unread) != wanted:
                raise CheckedIOError("funread must be followed by identical fread!")
            data, self._unread = self._unread, b""
            return data

        chunks = []
        received = 0
        while received < wanted:
            try:
                chunk = self._stream.read(wanted - received)
            except OSError as exc:
                raise CheckedIOError(self._failure(size, nitems, eof=False)) from exc
            if not chunk:
                raise CheckedIOError(self._failure(size, nitems, eof=True))
            chunks.append(chunk)
            received += len(chunk)
        return b"".join(chunks)

    def unread(self, data: bytes) -> None:
        """Push data back so that the next read of the same size returns it."""
        if self._unread:
            raise CheckedIOError("Tried to unread twice in a row")
        self._unread = bytes(data)

    def skip(self, offset: int, buf_size: int) -> None:
        """Skip ``offset`` bytes by reading; works on pipes as well as files."""
        skipped = 0
        while skipped < offset:
            skipped += len(self.read(1, min(offset - skipped, buf_size)))

    def readline(self, size: int) -> bytes:
        """Read one line of at most ``size - 1`` bytes; raise at end of file."""
        if size < 2:
            raise ValueError("readline needs room for at least one byte")
        try:
            line = self._stream.readline(size - 1)
        except OSError as exc:
            raise CheckedIOError(self._failure(size, 1, eof=False)) from exc
        if not line:
            raise CheckedIOError(self._failure(size, 1, eof=True))
        return line


def check_open(filename: str, mode: str):
    """Open a file, raising CheckedIOError with the reason on failure."""
    try:
        return open(filename, mode)
    except OSError as exc:
        if mode.startswith("w"):
            purpose = "writing"
        elif mode.startswith("a"):
            purpose = "appending"
        else:
            purpose = "reading"
        raise CheckedIOError(f"Failed to open file {filename} for {purpose}!") from exc


def check_mmap_file(filename: str, mode: str) -> mmap.mmap:
    """Map a whole file into memory, read-only ('r') or shared-writable ('w')."""
    if mode == "r":
        open_mode, access = "rb", mmap.ACCESS_READ
    elif mode == "w":
        open_mode, access = "r+b", mmap.ACCESS_WRITE
    else:
        raise CheckedIOError(f"Invalid mode {mode} passed to check_mmap_file!")
    with check_open(filename, open_mode) as handle:
        try:
            return mmap.mmap(handle.fileno(), 0, access=access)
        except (OSError, ValueError) as exc:
            raise CheckedIOError(
                f"Mmap failure on file {filename}, mode {mode}!"
            ) from exc


@contextlib.contextmanager
def rw_socket(command: str) -> Iterator[BinaryIO]:
    """Run a shell command with stdin and stdout joined to one stream.

    On exit the stream is closed and the child is killed and reaped.
    """
    parent, child = socket.socketpair()
    try:
        process = subprocess.Popen(["sh", "-c", command], stdin=child, stdout=child)
    except OSError as exc:
        parent.close()
        child.close()
        raise CheckedIOError(f"Failed to start child process: {command}") from exc
    child.close()
    stream = parent.makefile("rwb")
    try:
        yield stream
    finally:
        stream.close()
        parent.close()
        process.kill()
        process.wait()