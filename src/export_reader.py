"""Export Reader - Loads cloud cost CSV exports from local files or S3."""

import hashlib
import logging
import os
from pathlib import Path
from typing import Optional, Tuple

import boto3
from botocore.exceptions import ClientError, NoCredentialsError

from errors import ParseError

logger = logging.getLogger(__name__)

# Default cache directory
DEFAULT_CACHE_DIR = os.path.expanduser("~/.cache/cost-reports")

S3_SCHEME = "s3://"


def parse_s3_uri(uri: str) -> Tuple[str, str]:
    """
    Split an s3://bucket/key URI.

    Returns:
        Tuple of (bucket, key)
    """
    if not uri.startswith(S3_SCHEME):
        raise ValueError(f"Not an S3 URI: {uri}")

    bucket, _, key = uri[len(S3_SCHEME):].partition("/")
    if not bucket or not key:
        raise ValueError(f"S3 URI must include a bucket and a key: {uri}")
    return bucket, key


class CostExportReader:
    """Read cost export CSV text from the local filesystem or S3."""

    def __init__(
        self,
        aws_profile: Optional[str] = None,
        aws_region: Optional[str] = None,
        cache_dir: Optional[str] = None,
        use_cache: bool = True,
    ) -> None:
        """
        Initialize the export reader.

        Args:
            aws_profile: AWS profile name (optional)
            aws_region: AWS region (optional)
            cache_dir: Directory for caching downloaded exports (None = ~/.cache/cost-reports)
            use_cache: Whether to keep downloaded exports locally (default: True)
        """
        self.aws_profile = aws_profile
        self.aws_region = aws_region
        self.use_cache = use_cache
        self.cache_dir = Path(cache_dir).expanduser() if cache_dir else Path(DEFAULT_CACHE_DIR)

        self._session_params = {}
        if aws_profile:
            self._session_params["profile_name"] = aws_profile
        if aws_region:
            self._session_params["region_name"] = aws_region

        self._s3_client = None

    @property
    def s3_client(self):
        """S3 client, created on first use so local reads need no AWS credentials."""
        if self._s3_client is None:
            try:
                session = boto3.Session(**self._session_params)
                self._s3_client = session.client("s3")
                logger.info("Initialized S3 client")
            except NoCredentialsError:
                logger.error("AWS credentials not found. Please configure credentials.")
                raise
            except Exception as e:
                logger.error(f"Error initializing AWS session: {e}")
                raise
        return self._s3_client

    def _get_cache_path(self, bucket: str, key: str, etag: str) -> Path:
        """
        Get local cache path for an S3 object version.

        Uses a hash of bucket+key+ETag so a replaced export is downloaded again.
        """
        full_path = f"{bucket}/{key}@{etag}"
        path_hash = hashlib.md5(full_path.encode()).hexdigest()[:16]
        return self.cache_dir / f"{path_hash}_{os.path.basename(key)}"

    def _download(self, bucket: str, key: str) -> bytes:
        try:
            if not self.use_cache:
                response = self.s3_client.get_object(Bucket=bucket, Key=key)
                return response["Body"].read()

            etag = self.s3_client.head_object(Bucket=bucket, Key=key)["ETag"].strip('"')
            cache_path = self._get_cache_path(bucket, key, etag)
            if cache_path.exists():
                logger.debug(f"Cache hit: s3://{bucket}/{key}")
                return cache_path.read_bytes()

            logger.debug(f"Cache miss, downloading: s3://{bucket}/{key}")
            self.cache_dir.mkdir(parents=True, exist_ok=True)
            self.s3_client.download_file(bucket, key, str(cache_path))
            return cache_path.read_bytes()
        except ClientError as e:
            logger.error(f"Failed to download s3://{bucket}/{key}: {e}")
            raise

    def read_bytes(self, source: str) -> bytes:
        """Read the raw bytes of an export from a local path or s3:// URI."""
        if source.startswith(S3_SCHEME):
            bucket, key = parse_s3_uri(source)
            logger.info(f"Reading export from s3://{bucket}/{key}")
            return self._download(bucket, key)

        path = Path(source).expanduser()
        logger.info(f"Reading export from {path}")
        return path.read_bytes()

    def read_text(self, source: str) -> str:
        """
        Read an export as text.

        Args:
            source: Local file path or s3://bucket/key URI

        Returns:
            Decoded CSV text

        Raises:
            ParseError: If the content is not valid UTF-8
        """
        content = self.read_bytes(source)
        try:
            return content.decode("utf-8-sig")
        except UnicodeDecodeError as e:
            raise ParseError(f"Export {source} is not UTF-8 encoded") from e

    def clear_cache(self) -> int:
        """
        Delete cached exports.

        Returns:
            Number of files removed
        """
        if not self.cache_dir.exists():
            return 0

        removed = 0
        for cached in self.cache_dir.iterdir():
            if cached.is_file():
                cached.unlink()
                removed += 1
        logger.info(f"Removed {removed} cached exports from {self.cache_dir}")
        return removed
