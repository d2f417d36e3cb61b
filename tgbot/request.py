"""Protocol-level request descriptors.

A :class:`RequestDescriptor` is what the request builder hands to an executor:
the HTTP verb, the remote method name and an encoded body.  Descriptors are
immutable and carry no connection details, so the same descriptor can be sent
through any executor.
"""

from __future__ import annotations

import dataclasses
import mimetypes
import os
from typing import Literal, Optional, Tuple, Union

from pydantic import BaseModel, model_validator

from tgbot.exceptions import RequestBuildError


class InputFile(BaseModel):
    """A file argument: either a reference the server already knows or an upload.

    References (a ``file_id`` or an HTTP URL) travel as plain strings.  Uploads
    carry raw bytes and force multipart encoding of the whole call.

    Usage::

        InputFile.from_id("AgADBAAD...")
        InputFile.from_url("https://example.com/cat.png")
        InputFile.from_bytes(b"...", "report.csv", content_type="text/csv")
        InputFile.from_path("/tmp/photo.jpg")
    """

    reference: Optional[str] = None
    content: Optional[bytes] = None
    filename: Optional[str] = None
    content_type: Optional[str] = None

    model_config = {"frozen": True}

    @model_validator(mode="after")
    def _check_exclusive(self) -> InputFile:
        if (self.reference is None) == (self.content is None):
            raise ValueError("InputFile needs exactly one of reference or content")
        if self.content is not None and not self.filename:
            raise ValueError("uploaded InputFile needs a filename")
        return self

    @classmethod
    def from_id(cls, file_id: str) -> InputFile:
        return cls(reference=file_id)

    @classmethod
    def from_url(cls, url: str) -> InputFile:
        return cls(reference=url)

    @classmethod
    def from_bytes(cls, content: bytes, filename: str, content_type: Optional[str] = None) -> InputFile:
        return cls(content=content, filename=filename, content_type=content_type)

    @classmethod
    def from_path(cls, path: Union[str, os.PathLike], content_type: Optional[str] = None) -> InputFile:
        """Read *path* now; the content type is guessed from the name if omitted."""
        filename = os.path.basename(os.fspath(path))
        with open(path, "rb") as fh:
            content = fh.read()
        if content_type is None:
            content_type = mimetypes.guess_type(filename)[0]
        return cls(content=content, filename=filename, content_type=content_type)

    @property
    def is_upload(self) -> bool:
        return self.content is not None


# ── Bodies ───────────────────────────────────────────────────────────────────


@dataclasses.dataclass(frozen=True, slots=True)
class NoBody:
    pass


@dataclasses.dataclass(frozen=True, slots=True)
class JsonBody:
    payload: dict


@dataclasses.dataclass(frozen=True, slots=True)
class TextPart:
    name: str
    value: str


@dataclasses.dataclass(frozen=True, slots=True)
class FilePart:
    name: str
    filename: str
    content: bytes
    content_type: Optional[str] = None


@dataclasses.dataclass(frozen=True, slots=True)
class MultipartBody:
    parts: Tuple[Union[TextPart, FilePart], ...]


Body = Union[NoBody, JsonBody, MultipartBody]


# ── Descriptor ───────────────────────────────────────────────────────────────


@dataclasses.dataclass(frozen=True, slots=True)
class RequestDescriptor:
    """A fully built request.

    Attributes:
        verb: ``"GET"`` for calls without parameters, ``"POST"`` otherwise.
        path: Remote method name, e.g. ``"sendMessage"``.
        body: Encoded parameters.
        poll_timeout: Server-side long-poll wait embedded in the request, in
            seconds.  Executors keep their own timeout above it.
    """

    verb: Literal["GET", "POST"]
    path: str
    body: Body = NoBody()
    poll_timeout: Optional[int] = None

    def __post_init__(self) -> None:
        if not self.path:
            raise RequestBuildError("request path must not be empty")
        if self.verb == "GET" and not isinstance(self.body, NoBody):
            raise RequestBuildError("GET requests cannot carry a body")
