# Copyright 2026 The bucketfs Authors
#
# Licensed under the Apache License, Version 2.0 (the "License");
# you may not use this file except in compliance with the License.
# You may obtain a copy of the License at
#
#     http://www.apache.org/licenses/LICENSE-2.0
#
# Unless required by applicable law or agreed to in writing, software
# distributed under the License is distributed on an "AS IS" BASIS,
# WITHOUT WARRANTIES OR CONDITIONS OF ANY KIND, either express or implied.
# See the License for the specific language governing permissions and
# limitations under the License.

import os
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv
from pydantic import BaseModel, field_validator
from structlog import get_logger

from bucketfs.core.adapter import GoogleCloudStorageAdapter
from bucketfs.core.urls import STORAGE_API_URI_DEFAULT
from bucketfs.utils.exceptions import ConfigurationError

logger = get_logger(__name__)


class Config(BaseModel):
    # Bucket
    bucket_name: str
    project: Optional[str] = None
    path_prefix: str = ""

    # Public URLs (CDN or custom domain in front of the bucket)
    storage_api_uri: str = STORAGE_API_URI_DEFAULT

    # Service account JSON key; application default credentials when unset
    credentials_path: Optional[Path] = None

    @field_validator("bucket_name")
    @classmethod
    def bucket_name_not_blank(cls, value: str) -> str:
        if not value.strip():
            raise ValueError("bucket name must not be blank")
        return value.strip()


def load_config(env_file: Optional[str] = None) -> Config:
    """Load configuration from environment variables and .env file"""
    if env_file:
        load_dotenv(env_file)
    else:
        load_dotenv()

    bucket_name = os.getenv("GCS_BUCKET", "").strip()
    if not bucket_name:
        raise ConfigurationError(
            "GCS_BUCKET environment variable is required. "
            "Please set it in your .env file or environment.",
            env_file=env_file,
        )

    credentials_path = os.getenv("GOOGLE_APPLICATION_CREDENTIALS")

    config_data = {
        "bucket_name": bucket_name,
        "project": os.getenv("GCS_PROJECT") or None,
        "path_prefix": os.getenv("GCS_PATH_PREFIX", ""),
        "storage_api_uri": os.getenv("GCS_STORAGE_API_URI") or STORAGE_API_URI_DEFAULT,
        "credentials_path": Path(credentials_path) if credentials_path else None,
    }

    return Config(**config_data)


def create_adapter(config: Config) -> GoogleCloudStorageAdapter:
    """
    Build the storage client, bucket handle and adapter for a configuration.

    Raises:
        ConfigurationError: If the credentials file does not exist
    """
    from google.cloud import storage as gcs

    client_kwargs = {}
    if config.project:
        client_kwargs["project"] = config.project

    if config.credentials_path:
        if not config.credentials_path.is_file():
            raise ConfigurationError("Credentials file not found", path=str(config.credentials_path))
        client = gcs.Client.from_service_account_json(str(config.credentials_path), **client_kwargs)
    else:
        client = gcs.Client(**client_kwargs)

    bucket = client.bucket(config.bucket_name)
    logger.debug("Created storage client", bucket=config.bucket_name, prefix=config.path_prefix)

    return GoogleCloudStorageAdapter(
        client,
        bucket,
        path_prefix=config.path_prefix,
        storage_api_uri=config.storage_api_uri,
    )
