"""Document storage: S3 when a bucket is configured, local upload folder otherwise"""
import logging
import os
import uuid
from dataclasses import dataclass

import boto3
from botocore.exceptions import ClientError
from flask import current_app
from werkzeug.utils import secure_filename

logger = logging.getLogger(__name__)

LOCAL_URL_PREFIX = '/api/uploads'


@dataclass
class StoredFile:
    storage_key: str
    url: str
    filename: str
    original_name: str
    mime_type: str
    size: int


class StorageError(Exception):
    pass


def get_s3_client():
    return boto3.client('s3', region_name=current_app.config.get('AWS_REGION'))


def use_s3():
    return bool(current_app.config.get('S3_BUCKET'))


def file_size(file):
    """Size of an uploaded werkzeug FileStorage without reading it into memory"""
    stream = file.stream
    position = stream.tell()
    stream.seek(0, os.SEEK_END)
    size = stream.tell()
    stream.seek(position)
    return size


def save_project_file(file, project_id):
    """Persist an uploaded file under the project's prefix"""
    original_name = file.filename
    filename = secure_filename(original_name) or 'upload'
    ext = filename.rsplit('.', 1)[1].lower() if '.' in filename else ''
    unique_filename = f"{uuid.uuid4()}.{ext}" if ext else str(uuid.uuid4())
    storage_key = f"documents/{project_id}/{unique_filename}"
    mime_type = file.mimetype or 'application/octet-stream'
    size = file_size(file)

    if use_s3():
        bucket = current_app.config['S3_BUCKET']
        try:
            get_s3_client().upload_fileobj(file.stream, bucket, storage_key, ExtraArgs={'ContentType': mime_type})
        except ClientError as e:
            logger.error(f"S3 upload failed for {storage_key}: {e}")
            raise StorageError('Could not store file') from e
        url = f"s3://{bucket}/{storage_key}"
    else:
        upload_folder = current_app.config.get('UPLOAD_FOLDER', 'uploads')
        target_dir = os.path.join(upload_folder, 'documents', str(project_id))
        os.makedirs(target_dir, exist_ok=True)
        file.save(os.path.join(target_dir, unique_filename))
        url = f"{LOCAL_URL_PREFIX}/{storage_key}"

    logger.info(f"Stored {original_name} ({size} bytes) as {storage_key}")
    return StoredFile(storage_key, url, filename, original_name, mime_type, size)


def download_url(storage_key, original_name=None):
    """Time-limited URL for downloading a stored file"""
    if not use_s3():
        return f"{LOCAL_URL_PREFIX}/{storage_key}"

    params = {'Bucket': current_app.config['S3_BUCKET'], 'Key': storage_key}
    if original_name:
        params['ResponseContentDisposition'] = f'attachment; filename="{original_name}"'
    try:
        return get_s3_client().generate_presigned_url(
            'get_object', Params=params, ExpiresIn=current_app.config.get('S3_URL_EXPIRES', 3600)
        )
    except ClientError as e:
        logger.error(f"Could not sign URL for {storage_key}: {e}")
        raise StorageError('Could not create download link') from e


def delete_file(storage_key):
    """Remove a stored file; a missing file is not an error"""
    if use_s3():
        try:
            get_s3_client().delete_object(Bucket=current_app.config['S3_BUCKET'], Key=storage_key)
        except ClientError as e:
            logger.warning(f"S3 delete failed for {storage_key}: {e}")
        return

    path = os.path.join(current_app.config.get('UPLOAD_FOLDER', 'uploads'), storage_key)
    if os.path.exists(path):
        os.remove(path)


def local_upload_root():
    return os.path.abspath(current_app.config.get('UPLOAD_FOLDER', 'uploads'))
