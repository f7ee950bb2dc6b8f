"""Field tables for the files endpoints (Gemini API only)."""

from __future__ import annotations

from castor._transformers import t_file_name
from castor.converters._engine import Direction, field, registry

TO_WIRE = Direction.TO_WIRE
FROM_WIRE = Direction.FROM_WIRE

registry.define(
    "File",
    TO_WIRE,
    gemini=(field("name"), field("displayName"), field("mimeType"), field("sizeBytes")),
    vertex=None,
)

registry.define(
    "File",
    FROM_WIRE,
    gemini=(
        field("name"),
        field("displayName"),
        field("mimeType"),
        field("sizeBytes"),
        field("createTime"),
        field("expirationTime"),
        field("updateTime"),
        field("sha256Hash"),
        field("uri"),
        field("downloadUri"),
        field("state"),
        field("source"),
        field("videoMetadata"),
        field("error"),
    ),
    vertex=None,
)

registry.define(
    "CreateFileParameters",
    TO_WIRE,
    gemini=(field("file", nested="File"),),
    vertex=None,
)

registry.define(
    "UploadFileResponse",
    FROM_WIRE,
    gemini=(field("file", nested="File"),),
    vertex=None,
)

for _type_name in ("GetFileParameters", "DeleteFileParameters", "DownloadFileParameters"):
    registry.define(
        _type_name,
        TO_WIRE,
        gemini=(field("name", "_url.file", transform=t_file_name),),
        vertex=None,
    )

registry.define("DeleteFileResponse", FROM_WIRE, gemini=(), vertex=None)

registry.define(
    "ListFilesConfig",
    TO_WIRE,
    gemini=(
        field("pageSize", "_query.pageSize", parent=True),
        field("pageToken", "_query.pageToken", parent=True),
    ),
    vertex=None,
)

registry.define(
    "ListFilesParameters",
    TO_WIRE,
    gemini=(field("config", nested="ListFilesConfig"),),
    vertex=None,
)

registry.define(
    "ListFilesResponse",
    FROM_WIRE,
    gemini=(field("nextPageToken"), field("files", nested="File", each=True)),
    vertex=None,
)
