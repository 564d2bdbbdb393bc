"""S3 object storage upload."""

import hashlib

import aioboto3
import botocore.config
import types_aiobotocore_s3
from botocore.exceptions import BotoCoreError, ClientError

import secure_backup_utility.common
import secure_backup_utility.exceptions
import secure_backup_utility.types


def s3_client_config() -> botocore.config.Config:
    """Client configuration allowing a single attempt per request."""
    return botocore.config.Config(
        retries={
            "mode": "standard",
            "total_max_attempts": 1,
        },
    )


async def s3_put_artifact(
    config: secure_backup_utility.types.BackupConfig,
    s3: types_aiobotocore_s3.Client,
    artifact: bytes,
) -> None:
    """Store the artifact as a single object."""
    resp = await s3.put_object(
        Bucket=config.bucket,
        Key=config.object_key,
        Body=artifact,
        ContentLength=len(artifact),
    )
    etag = str(resp.get("ETag", ""))
    if hashlib.md5(artifact).hexdigest() not in etag:  # nosec
        secure_backup_utility.common.conditional_echo_debug(
            config,
            f"Calculated ETag {hashlib.md5(artifact).hexdigest()} and response ETag {etag} mismatch",  # nosec
        )


async def s3_upload_artifact(
    config: secure_backup_utility.types.BackupConfig,
    artifact: bytes,
) -> None:
    """Upload the artifact using only the configured region and key pair."""
    secure_backup_utility.common.conditional_echo_debug(
        config,
        f"Uploading {len(artifact)} bytes to {config.bucket}/{config.object_key} "
        f"in {config.region}",
    )
    session = aioboto3.Session(
        aws_access_key_id=config.access_key,
        aws_secret_access_key=config.secret_key,
        region_name=config.region,
    )
    try:
        async with session.client(
            service_name="s3",
            region_name=config.region,
            aws_access_key_id=config.access_key,
            aws_secret_access_key=config.secret_key,
            config=s3_client_config(),
        ) as s3:
            await s3_put_artifact(config, s3, artifact)
    except ClientError as e:
        code = e.response.get("Error", {}).get("Code", "")
        raise secure_backup_utility.exceptions.UploadFailed(
            f"Object storage rejected the upload ({code}): {e}"
        ) from e
    except BotoCoreError as e:
        raise secure_backup_utility.exceptions.UploadFailed(
            f"Could not reach object storage: {e}"
        ) from e

    secure_backup_utility.common.conditional_echo_debug(
        config, f"Upload complete for {config.object_key}"
    )
