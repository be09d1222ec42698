"""Google Drive upload for finished slides.

Slides are uploaded with the caller's OAuth access token, so the
service never holds Drive credentials of its own. The Google API client
is blocking, so each upload runs in a worker thread and concurrent
uploads overlap on the event loop.

A failed upload is reported as an ``UploadResult`` with
``success=False``; it never raises.
"""

from __future__ import annotations

import asyncio
import logging
from io import BytesIO
from typing import Any, Dict, Optional

from google.oauth2.credentials import Credentials
from googleapiclient.discovery import build
from googleapiclient.http import MediaIoBaseUpload

from .image_ops import from_data_uri
from .models import UploadResult

logger = logging.getLogger(__name__)

UPLOAD_FIELDS = "id, webViewLink, webContentLink"


class DriveUploader:
    """Upload PNG slides to Google Drive (v3 API)."""

    def _service(self, access_token: str) -> Any:
        credentials = Credentials(token=access_token)
        return build("drive", "v3", credentials=credentials, cache_discovery=False)

    def _create_file(self, data: bytes, filename: str, access_token: str, folder_id: Optional[str]) -> Dict[str, Any]:
        metadata: Dict[str, Any] = {"name": filename, "parents": [folder_id] if folder_id else []}
        media = MediaIoBaseUpload(BytesIO(data), mimetype="image/png", resumable=False)
        return (
            self._service(access_token)
            .files()
            .create(body=metadata, media_body=media, fields=UPLOAD_FIELDS)
            .execute()
        )

    async def upload(self, data_uri: str, filename: str, access_token: str, folder_id: Optional[str] = None) -> UploadResult:
        """Upload one slide given as a base64 data URI.

        Args:
            data_uri: The slide image, ``data:image/png;base64,...``.
            filename: Name of the file to create in Drive.
            access_token: OAuth bearer token supplied by the caller.
            folder_id: Optional parent folder id.

        Returns:
            The created file's id and links, or the error message.
        """
        try:
            data = from_data_uri(data_uri)
            created = await asyncio.to_thread(self._create_file, data, filename, access_token, folder_id)
        except Exception as e:
            logger.error("Error uploading %s to Drive: %s", filename, e)
            return UploadResult(success=False, error=str(e) or e.__class__.__name__)
        return UploadResult(
            success=True,
            file_id=created.get("id"),
            web_view_link=created.get("webViewLink"),
            web_content_link=created.get("webContentLink"),
        )
