"""Storage service for handling Supabase storage operations."""

from typing import Any, Dict, List, Optional

import httpx

from claimdocs.core.config import settings
from claimdocs.core.exceptions import StorageError
from claimdocs.utils.logging import get_logger

LOGGER = get_logger(__name__)


class StorageService:
    """Service for managing claim files in Supabase storage."""

    def __init__(self, bucket: Optional[str] = None):
        self.url = settings.supabase_url.rstrip("/")
        self.service_role_key = settings.supabase_service_role_key
        self.base_api_url = f"{self.url}/storage/v1"
        self.bucket = bucket or settings.storage_bucket
        self.headers = {
            "Authorization": f"Bearer {self.service_role_key}",
            "apikey": self.service_role_key,
        }

    async def upload_file(
        self,
        content: bytes,
        path: str,
        content_type: Optional[str] = None,
        bucket: Optional[str] = None,
    ) -> Dict[str, Any]:
        """Upload bytes to Supabase storage without overwriting.

        Args:
            content: File body.
            path: Target path within the bucket.
            content_type: MIME type stored with the object.
            bucket: Override of the configured bucket.

        Returns:
            Dict containing the upload result.

        Raises:
            StorageError: If the upload fails.
        """
        bucket = bucket or self.bucket
        upload_url = f"{self.base_api_url}/object/{bucket}/{path}"

        try:
            async with httpx.AsyncClient() as client:
                response = await client.post(
                    upload_url,
                    headers={
                        **self.headers,
                        "Content-Type": content_type or "application/octet-stream",
                        "cache-control": "max-age=3600",
                        "x-upsert": "false",
                    },
                    content=content,
                    timeout=settings.http_timeout
                )
        except httpx.HTTPError as e:
            LOGGER.error(f"Error uploading file to Supabase: {str(e)}", exc_info=True)
            raise StorageError(f"Storage upload error: {str(e)}", original_error=e)

        if response.status_code != 200:
            LOGGER.error(
                f"Failed to upload file to Supabase: {response.text}",
                extra={"bucket": bucket, "path": path, "status_code": response.status_code}
            )
            raise StorageError(f"Upload failed: {response.text}")

        return response.json()

    async def get_signed_url(
        self,
        path: str,
        expires_in: int = 3600,
        bucket: Optional[str] = None,
    ) -> Dict[str, Any]:
        """Generate a signed URL for a stored object.

        Returns:
            The absolute signed URL and the storage path.

        Raises:
            StorageError: If URL generation fails.
        """
        bucket = bucket or self.bucket
        url = f"{self.base_api_url}/object/sign/{bucket}/{path}"

        try:
            async with httpx.AsyncClient() as client:
                response = await client.post(
                    url,
                    headers=self.headers,
                    json={"expiresIn": expires_in},
                    timeout=settings.http_timeout
                )
        except httpx.HTTPError as e:
            LOGGER.error(f"Error generating signed URL: {str(e)}", exc_info=True)
            raise StorageError(f"Signed URL error: {str(e)}", original_error=e)

        if response.status_code != 200:
            LOGGER.error(
                f"Failed to generate signed URL: {response.text}",
                extra={"bucket": bucket, "path": path, "status_code": response.status_code}
            )
            raise StorageError(f"Signed URL generation failed: {response.text}")

        signed_path = response.json().get("signedURL")
        if not signed_path:
            raise StorageError("Supabase response did not contain signedURL")

        # Supabase answers with a path relative to either the project or the storage API
        if signed_path.startswith("/storage/"):
            signed_url = f"{self.url}{signed_path}"
        elif signed_path.startswith("/"):
            signed_url = f"{self.base_api_url}{signed_path}"
        else:
            signed_url = signed_path

        return {
            "signed_url": signed_url,
            "storage_path": path
        }

    async def create_download_url(
        self,
        path: str,
        expires_in: Optional[int] = None,
    ) -> str:
        """Signed URL for viewing a document, one hour by default."""
        result = await self.get_signed_url(
            path, expires_in or settings.upload.signed_url_ttl_seconds
        )
        return result["signed_url"]

    async def delete_files(self, paths: List[str], bucket: Optional[str] = None) -> None:
        """Remove objects from the bucket.

        Raises:
            StorageError: If Supabase rejects the delete.
        """
        bucket = bucket or self.bucket
        url = f"{self.base_api_url}/object/{bucket}"

        try:
            async with httpx.AsyncClient() as client:
                response = await client.request(
                    "DELETE",
                    url,
                    headers=self.headers,
                    json={"prefixes": paths},
                    timeout=settings.http_timeout
                )
        except httpx.HTTPError as e:
            LOGGER.error(f"Error deleting files from Supabase: {str(e)}", exc_info=True)
            raise StorageError(f"Storage delete error: {str(e)}", original_error=e)

        if response.status_code != 200:
            LOGGER.error(
                f"Failed to delete files from Supabase: {response.text}",
                extra={"bucket": bucket, "paths": paths, "status_code": response.status_code}
            )
            raise StorageError(f"Delete failed: {response.text}")
