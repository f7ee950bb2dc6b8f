"""Files resource (Gemini API only): upload, get, list, delete, download."""

from __future__ import annotations

import logging
import mimetypes
import os
from pathlib import Path
from typing import IO, Any

from castor._resource import BaseModule
from castor.errors import ConversionError, ResponseFormatError
from castor.pagers import AsyncPager
from castor.types import (
    DeleteFileConfig,
    DeleteFileResponse,
    DownloadFileConfig,
    File,
    GetFileConfig,
    ListFilesConfig,
    ListFilesResponse,
    UploadFileConfig,
    UploadFileResponse,
)

logger = logging.getLogger(__name__)


class Files(BaseModule):
    """Manage files stored with the Gemini API.

    Every method fails with ``ConversionError`` on a Vertex AI client.
    """

    async def upload(
        self,
        *,
        file: str | os.PathLike[str] | IO[bytes] | bytes,
        config: UploadFileConfig | None = None,
    ) -> File:
        """Upload a local file, an open binary stream or raw bytes.

        Args:
            file: Path, binary stream or bytes to upload.
            config: Optional name, display name and MIME type. The MIME type
                is guessed from the path when omitted.

        Returns:
            The created file, as reported by the finalize response.
        """
        config = config or UploadFileConfig()
        mime_type = config.mime_type
        if isinstance(file, (str, os.PathLike)):
            path = Path(file)
            if not path.is_file():
                raise FileNotFoundError(f"{path} is not a valid file path.")
            size = path.stat().st_size
            mime_type = mime_type or mimetypes.guess_type(path.name)[0]
            source: Any = None
        elif isinstance(file, (bytes, bytearray)):
            path = None
            size = len(file)
            source = bytes(file)
        else:
            path = None
            position = file.tell()
            size = file.seek(0, os.SEEK_END) - position
            file.seek(position)
            source = file
        if not mime_type:
            raise ConversionError(
                "Unknown mime type: could not determine it from the file name",
                hint="Pass config=UploadFileConfig(mime_type=...).",
            )

        name = config.name
        if name and not name.startswith("files/"):
            name = f"files/{name}"
        prepared = self._prepare(
            "CreateFileParameters",
            {
                "file": File(
                    name=name,
                    display_name=config.display_name,
                    mime_type=mime_type,
                    size_bytes=size,
                ),
                "config": config,
            },
        )
        upload_url = await self._api_client.create_upload_session(
            "files",
            prepared.body,
            size=size,
            mime_type=mime_type,
            http_options=prepared.http_options,
        )
        logger.debug("Uploading %d bytes (%s)", size, mime_type)
        if path is not None:
            with path.open("rb") as handle:
                node = await self._api_client.upload_file(
                    handle, upload_url, http_options=prepared.http_options
                )
        else:
            node = await self._api_client.upload_file(
                source, upload_url, http_options=prepared.http_options
            )
        uploaded = self._decode("UploadFileResponse", UploadFileResponse, node).file
        if uploaded is None:
            raise ResponseFormatError("upload finished without a file in the response")
        return uploaded

    async def get(self, *, name: str, config: GetFileConfig | None = None) -> File:
        return await self._call(
            "get",
            "files/{file}",
            "GetFileParameters",
            {"name": name, "config": config},
            "File",
            File,
        )

    async def delete(
        self, *, name: str, config: DeleteFileConfig | None = None
    ) -> DeleteFileResponse:
        return await self._call(
            "delete",
            "files/{file}",
            "DeleteFileParameters",
            {"name": name, "config": config},
            "DeleteFileResponse",
            DeleteFileResponse,
        )

    async def _list(self, config: ListFilesConfig) -> ListFilesResponse:
        return await self._call(
            "get",
            "files",
            "ListFilesParameters",
            {"config": config},
            "ListFilesResponse",
            ListFilesResponse,
        )

    async def list(self, *, config: ListFilesConfig | None = None) -> AsyncPager[File]:
        return AsyncPager("files", self._list, config, ListFilesConfig)

    async def download(
        self, *, file: str | File, config: DownloadFileConfig | None = None
    ) -> bytes:
        """Download a generated file's bytes.

        ``file`` may be a name (``files/abc``), a download URI or a
        :class:`File`.
        """
        if isinstance(file, File):
            name = file.download_uri or file.name
            if not name:
                raise ConversionError("file has neither a name nor a download URI")
        else:
            name = file
        prepared = self._prepare("DownloadFileParameters", {"name": name, "config": config})
        return await self._api_client.download_file(
            prepared.path("files/{file}:download", alt="media"), prepared.http_options
        )
