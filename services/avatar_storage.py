"""Avatar storage on S3 or an S3-compatible service.

Uploads user avatars under the ``avatars/`` prefix and hands out presigned PUT
URLs for direct browser uploads.
"""
import base64
import binascii
import secrets
import string
import time
from datetime import datetime
from typing import Optional, Tuple

import boto3
from botocore.config import Config as BotoConfig
from botocore.exceptions import BotoCoreError, ClientError
from flask import current_app

AVATAR_PREFIX = 'avatars'
PRESIGNED_URL_EXPIRES = 3600  # seconds

_IMAGE_TYPES = (
    ('image/png', 'png'),
    ('image/jpeg', 'jpg'),
    ('image/gif', 'gif'),
)


class AvatarStorageError(Exception):
    """Raised when an avatar cannot be stored or a URL cannot be generated."""


def avatar_file_details(avatar_data: str, now: Optional[datetime] = None) -> Tuple[str, str]:
    """
    Pick a unique file name and content type for an avatar data URL.

    PNG, JPEG and GIF are recognised from the data URL; anything else is
    treated as JPEG.
    """
    content_type, extension = 'image/jpeg', 'jpg'
    for mime, ext in _IMAGE_TYPES:
        if mime in avatar_data:
            content_type, extension = mime, ext
            break

    seconds = now.timestamp() if now else time.time()
    timestamp = int(seconds * 1000)
    alphabet = string.ascii_lowercase + string.digits
    random_part = ''.join(secrets.choice(alphabet) for _ in range(13))
    return f'avatar_{timestamp}_{random_part}.{extension}', content_type


def decode_avatar_data(file_data: str) -> bytes:
    """Decode base64 image data, with or without a ``data:...;base64,`` prefix."""
    if 'base64,' in file_data:
        file_data = file_data.split('base64,', 1)[1]
    try:
        return base64.b64decode(file_data)
    except (binascii.Error, ValueError) as e:
        raise AvatarStorageError(f'Invalid avatar image data: {e}') from e


class AvatarStorage:

    def __init__(self, bucket=None, region='us-east-1', access_key_id=None,
                 secret_access_key=None, endpoint=None, client=None):
        self.bucket = bucket
        self.region = region or 'us-east-1'
        self.access_key_id = access_key_id
        self.secret_access_key = secret_access_key
        self.endpoint = endpoint or None
        self._client = client

    @classmethod
    def from_config(cls, config):
        return cls(
            bucket=config.get('AWS_S3_BUCKET'),
            region=config.get('AWS_REGION', 'us-east-1'),
            access_key_id=config.get('AWS_ACCESS_KEY_ID'),
            secret_access_key=config.get('AWS_SECRET_ACCESS_KEY'),
            endpoint=config.get('AWS_S3_ENDPOINT'),
        )

    @property
    def is_configured(self):
        return bool(self.access_key_id and self.secret_access_key and self.bucket)

    @property
    def client(self):
        # Created on first use so an unconfigured app starts without touching boto3
        if self._client is None:
            self._client = boto3.client(
                's3',
                region_name=self.region,
                endpoint_url=self.endpoint,
                aws_access_key_id=self.access_key_id,
                aws_secret_access_key=self.secret_access_key,
                config=BotoConfig(signature_version='s3v4'),
            )
        return self._client

    def _require_configuration(self):
        if not self.is_configured:
            raise AvatarStorageError('AWS S3 credentials or bucket name are not configured')

    @staticmethod
    def key_for(file_name):
        return f'{AVATAR_PREFIX}/{file_name}'

    def public_url(self, key):
        if self.endpoint:
            return f'{self.endpoint.rstrip("/")}/{self.bucket}/{key}'
        return f'https://{self.bucket}.s3.{self.region}.amazonaws.com/{key}'

    def upload_avatar(self, file_data, file_name, content_type):
        """
        Upload a base64 encoded image and return its URL.

        Args:
            file_data: Base64 string, optionally a full data URL
            file_name: Name for the object under ``avatars/``
            content_type: MIME type stored with the object

        Returns:
            Public URL of the uploaded object
        """
        self._require_configuration()
        body = decode_avatar_data(file_data)
        key = self.key_for(file_name)

        try:
            self.client.put_object(
                Bucket=self.bucket,
                Key=key,
                Body=body,
                ContentType=content_type,
            )
        except (ClientError, BotoCoreError) as e:
            current_app.logger.error(f'Error uploading file to S3: {e}')
            raise AvatarStorageError('Failed to upload avatar image') from e

        current_app.logger.info(f'Avatar uploaded to {key}')
        return self.public_url(key)

    def get_presigned_upload_url(self, file_name, content_type):
        """Presigned PUT URL for uploading an avatar directly, valid for one hour"""
        self._require_configuration()
        try:
            return self.client.generate_presigned_url(
                'put_object',
                Params={
                    'Bucket': self.bucket,
                    'Key': self.key_for(file_name),
                    'ContentType': content_type,
                },
                ExpiresIn=PRESIGNED_URL_EXPIRES,
            )
        except (ClientError, BotoCoreError) as e:
            current_app.logger.error(f'Error generating presigned URL: {e}')
            raise AvatarStorageError('Failed to generate upload URL') from e


def get_avatar_storage():
    return current_app.extensions['avatar_storage']
