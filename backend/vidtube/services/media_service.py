# 미디어 호스팅 서비스 레이어
# - 임시 디렉터리에 저장된 업로드 파일을 Cloudinary 업로드 API로 전송
# - 성공/실패와 관계없이 로컬 임시 파일은 삭제
# - 네트워크 오류와 5xx 응답은 tenacity로 재시도

import hashlib
import logging
import os
import time
from dataclasses import dataclass
from typing import Dict, Optional

import requests
from fastapi.concurrency import run_in_threadpool

from ..core.config import settings
from ..core.exceptions import MediaUploadError
from ..core.retry import api_retry

logger = logging.getLogger(__name__)


@dataclass
class MediaAsset:
    url: str
    secure_url: str = ""
    public_id: str = ""
    resource_type: str = ""

    @property
    def hosted_url(self) -> str:
        return self.secure_url or self.url


def sign_params(params: Dict[str, str], api_secret: str) -> str:
    """Cloudinary 서명: 파라미터를 키 순으로 k=v&... 로 이어 붙이고 secret을 붙여 SHA-1."""
    to_sign = "&".join(f"{k}={params[k]}" for k in sorted(params) if params[k] not in (None, ""))
    return hashlib.sha1(f"{to_sign}{api_secret}".encode("utf-8")).hexdigest()


class MediaUploader:
    def __init__(self, cloud_name: str = None, api_key: str = None, api_secret: str = None,
                 api_base: str = None, timeout: int = None):
        self.cloud_name = cloud_name or settings.CLOUDINARY_CLOUD_NAME
        self.api_key = api_key or settings.CLOUDINARY_API_KEY
        self.api_secret = api_secret or settings.CLOUDINARY_API_SECRET
        self.api_base = (api_base or settings.CLOUDINARY_API_BASE).rstrip("/")
        self.timeout = timeout or settings.MEDIA_UPLOAD_TIMEOUT_SECONDS

    @property
    def upload_url(self) -> str:
        return f"{self.api_base}/{self.cloud_name}/auto/upload"

    @api_retry
    def _post(self, local_path: str) -> dict:
        params = {"timestamp": str(int(time.time()))}
        data = {
            **params,
            "api_key": self.api_key,
            "signature": sign_params(params, self.api_secret),
        }
        with open(local_path, "rb") as fh:
            resp = requests.post(
                self.upload_url,
                data=data,
                files={"file": (os.path.basename(local_path), fh)},
                timeout=self.timeout,
            )
        if resp.status_code >= 500:
            # 일시적인 서버 오류만 재시도 대상
            raise MediaUploadError(resp.text[:200], status_code=resp.status_code)
        resp.raise_for_status()
        return resp.json()

    def upload_file(self, local_path: Optional[str]) -> Optional[MediaAsset]:
        """파일을 업로드하고 MediaAsset을 돌려준다. 경로가 없거나 업로드에 실패하면 None."""
        if not local_path:
            return None
        try:
            body = self._post(local_path)
            asset = MediaAsset(
                url=body.get("url", ""),
                secure_url=body.get("secure_url", ""),
                public_id=body.get("public_id", ""),
                resource_type=body.get("resource_type", ""),
            )
            logger.info(f"[Cloudinary] Uploaded {os.path.basename(local_path)} as {asset.public_id}")
            return asset
        except (MediaUploadError, requests.exceptions.RequestException, OSError, ValueError) as e:
            logger.error(f"[Cloudinary] Upload failed for {os.path.basename(local_path)}: {e}", exc_info=True)
            return None
        finally:
            _remove_quietly(local_path)

    async def upload(self, local_path: Optional[str]) -> Optional[MediaAsset]:
        # requests는 블로킹이므로 스레드풀에서 실행
        return await run_in_threadpool(self.upload_file, local_path)


def _remove_quietly(path: str) -> None:
    try:
        os.remove(path)
    except FileNotFoundError:
        pass
    except OSError as e:
        logger.warning(f"[Cloudinary] Could not remove temp file {path}: {e}")


def get_media_uploader() -> MediaUploader:
    return MediaUploader()
