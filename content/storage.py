# content/storage.py
import hashlib
import hmac
import logging
import urllib.parse
import requests
from datetime import datetime
from config import settings
from errors import Internal

logger = logging.getLogger(__name__)

class BlobStorage:
    """Minimal S3-compatible client signing requests with AWS Signature V4."""

    def __init__(self):
        self.bucket = settings.STORAGE_BUCKET_NAME
        self.region = settings.STORAGE_REGION_NAME
        self.host = f"{settings.STORAGE_BUCKET_NAME}.{settings.STORAGE_HOST}"
        self.access_key = settings.STORAGE_ACCESS_KEY
        self.secret_key = settings.STORAGE_SECRET_KEY

    def object_key(self, story_id: str, filename: str) -> str:
        return f"stories/{story_id}/{datetime.utcnow().timestamp()}_{urllib.parse.quote(filename)}"

    def public_url(self, key: str) -> str:
        if settings.CDN_URL:
            return f"{settings.CDN_URL}/{key}"
        return f"{settings.STORAGE_ENDPOINT_URL}/{self.bucket}/{key}"

    def key_from_url(self, url: str) -> str:
        for prefix in (f"{settings.CDN_URL}/", f"{settings.STORAGE_ENDPOINT_URL}/{self.bucket}/"):
            if prefix != "/" and url.startswith(prefix):
                return url[len(prefix):]
        return url

    def upload(self, key: str, data: bytes, content_type: str) -> str:
        """Upload bytes under key and return the public URL."""
        payload_hash = hashlib.sha256(data).hexdigest()
        headers = self._auth_headers("PUT", f"/{key}", payload_hash, content_type, len(data))
        response = requests.put(f"https://{self.host}/{key}", data=data, headers=headers, timeout=60)
        if response.status_code != 200:
            logger.error(f"Blob upload failed: {response.status_code} - {response.text}")
            raise Internal("Failed to store media")
        return self.public_url(key)

    def delete(self, key: str) -> None:
        payload_hash = hashlib.sha256(b"").hexdigest()
        headers = self._auth_headers("DELETE", f"/{key}", payload_hash, None, 0)
        response = requests.delete(f"https://{self.host}/{key}", headers=headers, timeout=30)
        if response.status_code not in (200, 204):
            logger.error(f"Blob delete failed: {response.status_code} - {response.text}")
            raise Internal("Failed to delete media")

    def _auth_headers(self, method: str, canonical_uri: str, payload_hash: str, content_type, size: int) -> dict:
        now = datetime.utcnow()
        amz_date = now.strftime('%Y%m%dT%H%M%SZ')
        date_stamp = now.strftime('%Y%m%d')
        service = 's3'

        def sign(key, msg):
            return hmac.new(key, msg.encode('utf-8'), hashlib.sha256).digest()

        k_date = sign(('AWS4' + self.secret_key).encode('utf-8'), date_stamp)
        k_region = sign(k_date, self.region)
        k_service = sign(k_region, service)
        k_signing = sign(k_service, 'aws4_request')

        canonical_headers = f"host:{self.host}\nx-amz-content-sha256:{payload_hash}\nx-amz-date:{amz_date}\n"
        signed_headers = 'host;x-amz-content-sha256;x-amz-date'
        canonical_request = f'{method}\n{canonical_uri}\n\n{canonical_headers}\n{signed_headers}\n{payload_hash}'
        algorithm = 'AWS4-HMAC-SHA256'
        credential_scope = f'{date_stamp}/{self.region}/{service}/aws4_request'
        string_to_sign = f'{algorithm}\n{amz_date}\n{credential_scope}\n{hashlib.sha256(canonical_request.encode("utf-8")).hexdigest()}'
        signature = hmac.new(k_signing, string_to_sign.encode('utf-8'), hashlib.sha256).hexdigest()

        headers = {
            'Authorization': f'{algorithm} Credential={self.access_key}/{credential_scope}, SignedHeaders={signed_headers}, Signature={signature}',
            'x-amz-content-sha256': payload_hash,
            'x-amz-date': amz_date,
            'Content-Length': str(size),
        }
        if content_type:
            headers['Content-Type'] = content_type
        return headers
