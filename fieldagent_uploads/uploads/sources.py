"""
Byte sources for uploads.

A source reports its size once, when opened, and serves exact byte ranges
afterwards. Reads from several part tasks may overlap, so file-backed
sources serialize seek+read behind a lock.
"""

import base64
import hashlib
import io
import os
import threading
from abc import ABC, abstractmethod
from pathlib import Path
from typing import BinaryIO, Iterator, Optional, Union

from fieldagent_uploads.exceptions import InvalidInputError

UploadInput = Union[
  "ByteSource", str, os.PathLike, bytes, bytearray, memoryview, BinaryIO
]

READ_CHUNK_SIZE = 1024 * 1024


class ByteSource(ABC):
  """Random-access bytes with a name and a size fixed at open time."""

  name: str
  size: int

  @abstractmethod
  def read_range(self, offset: int, length: int) -> bytes:
    """Read up to ``length`` bytes at ``offset``; may return fewer at EOF."""

  def close(self) -> None:
    pass

  def __enter__(self):
    return self

  def __exit__(self, exc_type, exc_val, exc_tb):
    self.close()

  def iter_chunks(self, chunk_size: int = READ_CHUNK_SIZE) -> Iterator[bytes]:
    offset = 0
    while offset < self.size:
      chunk = self.read_range(offset, min(chunk_size, self.size - offset))
      if not chunk:
        return
      yield chunk
      offset += len(chunk)

  def md5_base64(self) -> str:
    """Base64-encoded MD5 digest of the whole content."""
    digest = hashlib.md5()
    for chunk in self.iter_chunks():
      digest.update(chunk)
    return base64.b64encode(digest.digest()).decode("ascii")


class BytesSource(ByteSource):
  """In-memory content."""

  def __init__(self, data: Union[bytes, bytearray, memoryview], name: str):
    self._data = bytes(data)
    self.name = name
    self.size = len(self._data)

  def read_range(self, offset: int, length: int) -> bytes:
    return self._data[offset : offset + length]


class FileObjectSource(ByteSource):
  """A seekable binary file object owned by the caller."""

  def __init__(self, fileobj: BinaryIO, name: str, owns_file: bool = False):
    if not fileobj.seekable():
      raise InvalidInputError("file object must be seekable", name=name)
    self._file = fileobj
    self._lock = threading.Lock()
    self._owns_file = owns_file
    self.name = name
    with self._lock:
      self._file.seek(0, io.SEEK_END)
      self.size = self._file.tell()

  def read_range(self, offset: int, length: int) -> bytes:
    with self._lock:
      self._file.seek(offset)
      return self._file.read(length)

  def close(self) -> None:
    if self._owns_file:
      self._file.close()


class PathSource(FileObjectSource):
  """A file on disk, opened for the lifetime of the source."""

  def __init__(self, path: Union[str, os.PathLike]):
    self.path = Path(path)
    if not self.path.is_file():
      raise InvalidInputError(f"File not found: {self.path}", path=str(self.path))
    super().__init__(self.path.open("rb"), self.path.name, owns_file=True)


def open_source(file: UploadInput, filename: Optional[str] = None) -> ByteSource:
  """
  Wrap a path, a bytes-like object, or a binary file object.

  Args:
      file: What to upload
      filename: Name reported to the API; required for bytes, inferred otherwise

  Raises:
      InvalidInputError: If no filename can be determined or the input is unusable
  """
  if isinstance(file, ByteSource):
    source: ByteSource = file
  elif isinstance(file, (str, os.PathLike)):
    source = PathSource(file)
  elif isinstance(file, (bytes, bytearray, memoryview)):
    if not filename:
      raise InvalidInputError("filename is required when uploading raw bytes")
    source = BytesSource(file, filename)
  elif hasattr(file, "read") and hasattr(file, "seek"):
    inferred = os.path.basename(getattr(file, "name", "") or "")
    if not (filename or inferred):
      raise InvalidInputError("filename is required for unnamed file objects")
    source = FileObjectSource(file, filename or inferred)
  else:
    raise InvalidInputError(
      f"Unsupported upload input type: {type(file).__name__}"
    )

  if filename:
    source.name = filename
  return source
