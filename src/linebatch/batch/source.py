"""
Record Source
=============

Lazy, single-pass reading of newline-delimited text into records.
"""

import io
import logging
import sys
from pathlib import Path
from typing import IO

from src.linebatch.core.config import STDIN_SOURCE
from src.linebatch.core.exceptions import InputFileNotFoundError, SourceError
from src.linebatch.core.models import Record

logger = logging.getLogger(__name__)

SourceLike = str | Path | IO

# Characters read per call while skipping the rest of an overlong line.
DRAIN_CHUNK_SIZE = 65536


class RecordSource:
    """
    Single-pass iterator of records read from a file or stream.

    Paths are opened when the source is created, so an unreadable input
    fails before any record is produced. Files opened here are closed when
    the source is exhausted or closed; streams supplied by the caller are
    left open.

    Undecodable bytes are kept as lone surrogates (``surrogateescape``)
    so that record validation can count them instead of aborting the run.

    When ``max_record_length`` is given, memory per record is bounded:
    overlong lines keep only their start and carry their full length so
    that validation rejects them.
    """

    def __init__(
        self,
        source: SourceLike,
        encoding: str = "utf-8",
        max_record_length: int | None = None,
    ):
        self.encoding = encoding
        self.max_record_length = max_record_length
        self.name = self._source_name(source)
        self._index = 0
        self._owns_stream = False
        self._wrapped = False
        self._stream: IO[str] | None = self._open(source)

    @staticmethod
    def _source_name(source: SourceLike) -> str:
        if isinstance(source, (str, Path)):
            return "<stdin>" if str(source) == STDIN_SOURCE else str(source)
        return str(getattr(source, "name", "<stream>"))

    def _open(self, source: SourceLike) -> IO[str]:
        if isinstance(source, (str, Path)):
            if str(source) == STDIN_SOURCE:
                return self._wrap(sys.stdin.buffer)

            path = Path(source)
            if not path.exists():
                raise InputFileNotFoundError(self.name)
            try:
                stream = path.open(encoding=self.encoding, errors="surrogateescape", newline="\n")
            except OSError as e:
                raise SourceError(self.name, e.strerror or str(e)) from e
            self._owns_stream = True
            logger.debug(f"Opened {self.name} ({self.encoding})")
            return stream

        if isinstance(source, io.TextIOBase):
            return source
        return self._wrap(source)

    def _wrap(self, binary: IO[bytes]) -> IO[str]:
        self._wrapped = True
        return io.TextIOWrapper(
            binary, encoding=self.encoding, errors="surrogateescape", newline="\n"
        )

    def __iter__(self) -> "RecordSource":
        return self

    def __next__(self) -> Record:
        if self._stream is None:
            raise StopIteration

        try:
            line, full_length = self._read_line(self._stream)
        except (OSError, UnicodeDecodeError) as e:
            self.close()
            raise SourceError(self.name, str(e)) from e

        if line is None:
            self.close()
            raise StopIteration

        record = Record(index=self._index, text=line, full_length=full_length)
        self._index += 1
        return record

    def _read_line(self, stream: IO[str]) -> tuple[str | None, int | None]:
        """
        Read one line without its terminator.

        With a length limit at most ``max_record_length`` characters are
        kept; the rest of an overlong line is read in bounded chunks and
        only counted. Returns ``(None, None)`` at end of input and the
        full line length as the second item when the text was cut short.
        """
        if self.max_record_length is None:
            line = stream.readline()
            if not line:
                return None, None
            return _strip_terminator(line), None

        # Two extra characters leave room for a CRLF terminator.
        line = stream.readline(self.max_record_length + 2)
        if not line:
            return None, None
        if line.endswith("\n") or len(line) < self.max_record_length + 2:
            return _strip_terminator(line), None

        length = len(line)
        tail = line[-2:]
        while not tail.endswith("\n"):
            chunk = stream.readline(DRAIN_CHUNK_SIZE)
            if not chunk:
                break
            length += len(chunk)
            tail = (tail + chunk)[-2:]

        if tail.endswith("\n"):
            length -= 2 if tail == "\r\n" else 1
        return line[: self.max_record_length], length

    @property
    def records_read(self) -> int:
        return self._index

    @property
    def closed(self) -> bool:
        return self._stream is None

    def close(self) -> None:
        """Release the underlying stream. Safe to call more than once."""
        stream, self._stream = self._stream, None
        if stream is None:
            return
        if self._owns_stream:
            stream.close()
        elif self._wrapped:
            # Detach so the caller's binary stream is not closed with the wrapper.
            stream.detach()

    def __enter__(self) -> "RecordSource":
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.close()


def load_records(
    source: SourceLike, encoding: str = "utf-8", max_record_length: int | None = None
) -> RecordSource:
    """
    Open a source of newline-delimited records.

    Args:
        source: File path, ``"-"`` for stdin, or an open text/binary stream
        encoding: Text encoding of the input
        max_record_length: Characters kept per record; longer lines are cut
            short and marked with their full length

    Returns:
        Lazy, single-pass record iterator

    Raises:
        SourceError: If the source is missing or unreadable
    """
    return RecordSource(source, encoding=encoding, max_record_length=max_record_length)


def _strip_terminator(line: str) -> str:
    if line.endswith("\n"):
        line = line[:-1]
        if line.endswith("\r"):
            line = line[:-1]
    return line
