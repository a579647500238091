# crediario/infra/storage_s3.py
from __future__ import annotations

import os
import uuid
from dataclasses import dataclass
from typing import Optional

import boto3
from botocore.config import Config
from botocore.exceptions import BotoCoreError, ClientError


ALLOWED_IMAGE_TYPES = {
    "image/jpeg": ".jpg",
    "image/png": ".png",
    "image/webp": ".webp",
}
MAX_PHOTO_BYTES = 2 * 1024 * 1024  # 2MB por foto


class S3StorageError(RuntimeError):
    pass


@dataclass(frozen=True)
class S3Config:
    endpoint: str
    access_key: str
    secret_key: str
    bucket: str
    region: str = "auto"


_REQUIRED_ENV = (
    "RAILWAY_S3_ENDPOINT",
    "RAILWAY_S3_ACCESS_KEY_ID",
    "RAILWAY_S3_SECRET_ACCESS_KEY",
    "RAILWAY_BUCKET",
)


def is_configured() -> bool:
    return all((os.getenv(k) or "").strip() for k in _REQUIRED_ENV)


def _getenv(name: str) -> str:
    v = (os.getenv(name) or "").strip()
    if not v:
        raise S3StorageError(f"Missing env: {name}")
    return v


def _cfg() -> S3Config:
    return S3Config(
        endpoint=_getenv("RAILWAY_S3_ENDPOINT").rstrip("/"),
        access_key=_getenv("RAILWAY_S3_ACCESS_KEY_ID"),
        secret_key=_getenv("RAILWAY_S3_SECRET_ACCESS_KEY"),
        bucket=_getenv("RAILWAY_BUCKET"),
        # precisa bater com o "auto" da credencial
        region=(os.getenv("RAILWAY_S3_REGION") or "auto").strip(),
    )


def _s3_client(cfg: S3Config):
    try:
        return boto3.client(
            "s3",
            endpoint_url=cfg.endpoint,
            aws_access_key_id=cfg.access_key,
            aws_secret_access_key=cfg.secret_key,
            region_name=cfg.region,
            config=Config(
                signature_version="s3v4",
                s3={"addressing_style": "path"},
            ),
        )
    except Exception as e:
        raise S3StorageError(f"Falha criando client S3: {e}") from e


def normalize_image_content_type(ct: Optional[str]) -> str:
    ct = (ct or "").lower().strip()
    if ct == "image/jpg":
        return "image/jpeg"
    return ct


def validate_photo(data: bytes, content_type: Optional[str]) -> str:
    """Retorna o content-type normalizado ou levanta S3StorageError."""
    if not data:
        raise S3StorageError("Foto vazia.")
    if len(data) > MAX_PHOTO_BYTES:
        raise S3StorageError("Foto maior que 2MB.")
    ct = normalize_image_content_type(content_type)
    if ct not in ALLOWED_IMAGE_TYPES:
        raise S3StorageError(f"Formato de foto não permitido: {ct or '-'} (use JPEG, PNG ou WEBP).")
    return ct


def upload_visit_photo(*, data: bytes, content_type: Optional[str], client_id: int) -> str:
    ct = validate_photo(data, content_type)
    key = f"visits/{client_id}/{uuid.uuid4().hex}{ALLOWED_IMAGE_TYPES[ct]}"

    cfg = _cfg()
    s3 = _s3_client(cfg)
    try:
        s3.put_object(Bucket=cfg.bucket, Key=key, Body=data, ContentType=ct)
    except (ClientError, BotoCoreError) as e:
        raise S3StorageError(f"Erro upload S3: {e}") from e
    return key


def delete_object_best_effort(key: Optional[str]) -> None:
    """Usado pra desfazer o upload quando a transação da visita falha."""
    if not key:
        return
    cfg = _cfg()
    try:
        _s3_client(cfg).delete_object(Bucket=cfg.bucket, Key=key.lstrip("/"))
    except (ClientError, BotoCoreError):
        return


def presign_get_url(key: str, expires_seconds: int = 3600) -> str:
    if not key:
        raise S3StorageError("key vazia")
    key = key.lstrip("/")

    cfg = _cfg()
    try:
        return _s3_client(cfg).generate_presigned_url(
            ClientMethod="get_object",
            Params={"Bucket": cfg.bucket, "Key": key},
            ExpiresIn=int(expires_seconds),
            HttpMethod="GET",
        )
    except (ClientError, BotoCoreError) as e:
        raise S3StorageError(f"Erro presign S3: {e}") from e
