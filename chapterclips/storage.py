import asyncio
import os

import boto3
from boto3.exceptions import S3UploadFailedError
from botocore.exceptions import BotoCoreError, ClientError

from chapterclips.errors import ConfirmationTimedOut, UploadFailed

DEFAULT_REGION = "us-east-2"
DEFAULT_URL_TTL = 3600
CONFIRM_INTERVAL = 5.0
CONFIRM_TIMEOUT = 300.0
_NOT_FOUND_CODES = {"404", "NoSuchKey", "NotFound"}


def create_s3_client(region: str = DEFAULT_REGION):
    return boto3.client(
        "s3",
        aws_access_key_id=os.environ.get("AWS_ACCESS"),
        aws_secret_access_key=os.environ.get("AWS_SECRET_ACCESS"),
        region_name=region,
    )


class ObjectStore:
    """Async facade over an S3 client.

    boto3 is blocking, so every call runs in a worker thread.
    """

    def __init__(self, client=None, region: str = DEFAULT_REGION, url_ttl: int = DEFAULT_URL_TTL):
        self.client = client or create_s3_client(region)
        self.url_ttl = url_ttl

    async def put(self, bucket: str, key: str, data: bytes) -> dict:
        try:
            return await asyncio.to_thread(
                self.client.put_object, Bucket=bucket, Key=key, Body=data
            )
        except (ClientError, BotoCoreError) as exc:
            raise UploadFailed(f"Upload of s3://{bucket}/{key} failed: {exc}") from exc

    async def upload_file(self, bucket: str, key: str, path: str) -> None:
        """Stream a local file to S3 with boto3's managed (multipart) transfer."""
        if not os.path.isfile(path):
            raise UploadFailed(f"Could not read {path}: no such file")
        print(f"  Uploading {os.path.basename(path)} to s3://{bucket}/{key}")
        try:
            await asyncio.to_thread(self.client.upload_file, path, bucket, key)
        except (S3UploadFailedError, ClientError, BotoCoreError, OSError) as exc:
            raise UploadFailed(f"Upload of s3://{bucket}/{key} failed: {exc}") from exc

    async def exists(self, bucket: str, key: str) -> bool:
        try:
            await asyncio.to_thread(self.client.head_object, Bucket=bucket, Key=key)
        except ClientError as exc:
            code = str(exc.response.get("Error", {}).get("Code", ""))
            if code in _NOT_FOUND_CODES:
                return False
            raise
        return True

    async def signed_get_url(self, bucket: str, key: str, ttl: int | None = None) -> str:
        return await asyncio.to_thread(
            self.client.generate_presigned_url,
            "get_object",
            Params={"Bucket": bucket, "Key": key},
            ExpiresIn=ttl or self.url_ttl,
        )

    async def confirm(
        self,
        bucket: str,
        key: str,
        interval: float = CONFIRM_INTERVAL,
        timeout: float = CONFIRM_TIMEOUT,
    ) -> str:
        """Wait until the object is visible, then return a signed GET URL.

        The upload acknowledgement is not taken as proof of read-after-write
        visibility; an independent existence check must succeed first.
        """
        if interval <= 0:
            raise ValueError("interval must be positive")
        elapsed = 0.0
        while elapsed < timeout:
            try:
                visible = await self.exists(bucket, key)
            except (ClientError, BotoCoreError) as exc:
                print(f"  Existence check for {key} failed: {exc}")
                visible = False

            if visible:
                url = await self.signed_get_url(bucket, key)
                print(f"  Object URL: {url}")
                return url

            print(f"  Object {key} not found yet, waiting...")
            elapsed += interval
            await asyncio.sleep(interval)

        raise ConfirmationTimedOut(bucket, key, elapsed)

    async def publish(
        self,
        bucket: str,
        key: str,
        path: str,
        interval: float = CONFIRM_INTERVAL,
        timeout: float = CONFIRM_TIMEOUT,
    ) -> str:
        await self.upload_file(bucket, key, path)
        return await self.confirm(bucket, key, interval=interval, timeout=timeout)

