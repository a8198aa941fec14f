"""Object store operations applied by the sync engine."""

from typing import Any

from botocore.exceptions import BotoCoreError, ClientError

from ..exceptions import SpaDeployDeleteError, SpaDeployUploadError
from .plan import PlanItem


class S3Operations:
    """Upload and delete plan items in a bucket."""

    def __init__(self, client: Any, bucket: str):
        """Initialize S3 operations.

        Args:
            client: boto3 S3 client
            bucket: Target bucket
        """
        self.client = client
        self.bucket = bucket

    def upload(self, item: PlanItem) -> Any:
        """Upload a plan item.

        The body is the in-memory ``data`` when set, else the local file.

        Args:
            item: Plan item with a local file or data

        Returns:
            put_object response

        Raises:
            SpaDeployUploadError: If reading the file or the request fails
        """
        params: dict[str, Any] = {
            "Bucket": self.bucket,
            "Key": item.key,
            "ContentDisposition": item.content_disposition or "inline",
        }
        if item.cache_control:
            params["CacheControl"] = item.cache_control
        if item.content_type:
            params["ContentType"] = item.content_type
        if item.acl:
            params["ACL"] = item.acl

        try:
            if item.data is not None:
                params["Body"] = item.data
            elif item.local is not None:
                params["Body"] = item.local.path.read_bytes()
            else:
                raise SpaDeployUploadError(f"Nothing to upload for {item.key}", key=item.key)
            return self.client.put_object(**params)
        except (ClientError, BotoCoreError, OSError) as e:
            raise SpaDeployUploadError(f"Upload of {item.key} failed: {e}", key=item.key) from e

    def delete(self, item: PlanItem) -> Any:
        """Delete the object of a plan item.

        Raises:
            SpaDeployDeleteError: If the request fails
        """
        try:
            return self.client.delete_object(Bucket=self.bucket, Key=item.key)
        except (ClientError, BotoCoreError) as e:
            raise SpaDeployDeleteError(f"Delete of {item.key} failed: {e}", key=item.key) from e
