"""
공급사 인증 정보 보관소
AES-256-GCM 으로 암호화하여 저장하고 불투명 참조(CredentialRef)만 공급사에 남긴다.

암호문 형식: {"v": 1, "alg": "AES-256-GCM", "nonce": "<b64>", "ct": "<b64>"}
참조 ID를 AAD 로 묶어 다른 레코드로 옮긴 암호문은 복호화되지 않는다.
"""

import base64
import binascii
import json
import os
import uuid
from typing import Dict, Optional

from cryptography.exceptions import InvalidTag
from cryptography.hazmat.primitives.ciphers.aead import AESGCM

from dropship_engine.config import Settings, get_settings
from dropship_engine.models.supplier import CredentialRef
from dropship_engine.monitoring import get_logger
from dropship_engine.storage.base import BaseStorage

logger = get_logger(__name__)

COLLECTION = "supplier_credentials"

_CURRENT_VERSION = 1
_ALGORITHM = "AES-256-GCM"
_REQUIRED_KEY_LENGTH = 32


class CredentialDecryptionError(Exception):
    """인증 정보 복호화 실패 (원인은 메시지에 값 없이 기록)"""


def load_key(settings: Optional[Settings] = None) -> bytes:
    """
    암호화 키 로드

    CREDENTIAL_KEY (base64 32바이트)를 사용한다.
    프로덕션이 아닌 환경에서 키가 없으면 프로세스 수명 동안만 유효한 임시 키를 만든다.
    """
    settings = settings or get_settings()
    encoded = (settings.credentials.key or "").strip()

    if not encoded:
        if settings.is_production():
            raise ValueError("프로덕션 환경에는 CREDENTIAL_KEY 설정이 필요합니다")
        logger.warning("CREDENTIAL_KEY 미설정: 임시 암호화 키 사용 (재시작 시 복호화 불가)")
        return AESGCM.generate_key(bit_length=256)

    try:
        key = base64.b64decode(encoded, validate=True)
    except binascii.Error as e:
        raise ValueError(f"CREDENTIAL_KEY 가 올바른 base64 가 아닙니다: {e}") from e

    if len(key) != _REQUIRED_KEY_LENGTH:
        raise ValueError(
            f"CREDENTIAL_KEY 길이가 올바르지 않습니다: {len(key)} (필요: {_REQUIRED_KEY_LENGTH})"
        )
    return key


def encrypt_credentials(credentials: Dict[str, str], key: bytes, aad: str) -> str:
    """인증 정보 dict 를 암호문 봉투(JSON 문자열)로 변환"""
    if len(key) != _REQUIRED_KEY_LENGTH:
        raise ValueError("AES-256-GCM 키는 32바이트여야 합니다")

    nonce = os.urandom(12)
    plaintext = json.dumps(credentials, sort_keys=True).encode("utf-8")
    ciphertext = AESGCM(key).encrypt(nonce, plaintext, aad.encode("utf-8"))

    return json.dumps(
        {
            "v": _CURRENT_VERSION,
            "alg": _ALGORITHM,
            "nonce": base64.b64encode(nonce).decode("ascii"),
            "ct": base64.b64encode(ciphertext).decode("ascii"),
        }
    )


def decrypt_credentials(envelope: str, key: bytes, aad: str) -> Dict[str, str]:
    """암호문 봉투를 복호화

    Raises:
        CredentialDecryptionError: 형식 오류, 키 불일치, AAD 불일치
    """
    try:
        data = json.loads(envelope)
    except (TypeError, json.JSONDecodeError) as e:
        raise CredentialDecryptionError("암호문 형식 오류") from e

    if data.get("v") != _CURRENT_VERSION or data.get("alg") != _ALGORITHM:
        raise CredentialDecryptionError("지원하지 않는 암호문 버전")

    try:
        nonce = base64.b64decode(data["nonce"])
        ciphertext = base64.b64decode(data["ct"])
        plaintext = AESGCM(key).decrypt(nonce, ciphertext, aad.encode("utf-8"))
    except (KeyError, binascii.Error, InvalidTag, ValueError) as e:
        raise CredentialDecryptionError("복호화 실패") from e

    return json.loads(plaintext.decode("utf-8"))


class CredentialVault:
    """암호화된 공급사 인증 정보 저장소"""

    def __init__(self, storage: BaseStorage, key: Optional[bytes] = None):
        self.storage = storage
        self._key = key if key is not None else load_key()

    async def store(self, supplier_id: str, credentials: Dict[str, str]) -> CredentialRef:
        """인증 정보 암호화 저장"""
        ref = CredentialRef(ref_id=f"cred_{uuid.uuid4().hex}")
        await self.storage.create(
            COLLECTION,
            {
                "supplier_id": supplier_id,
                "envelope": encrypt_credentials(credentials, self._key, ref.ref_id),
            },
            id=ref.ref_id,
        )
        logger.info(f"공급사 인증 정보 저장: {supplier_id}")
        return ref

    async def rotate(self, ref: CredentialRef, credentials: Dict[str, str]) -> CredentialRef:
        """기존 참조의 인증 정보 교체"""
        updated = await self.storage.update(
            COLLECTION,
            ref.ref_id,
            {"envelope": encrypt_credentials(credentials, self._key, ref.ref_id)},
        )
        if updated is None:
            raise CredentialDecryptionError("인증 정보 레코드 없음")
        logger.info(f"공급사 인증 정보 교체: {updated.get('supplier_id')}")
        return ref

    async def reveal(self, ref: CredentialRef) -> Dict[str, str]:
        """인증 정보 복호화"""
        document = await self.storage.get(COLLECTION, ref.ref_id)
        if document is None:
            raise CredentialDecryptionError("인증 정보 레코드 없음")
        return decrypt_credentials(document.get("envelope"), self._key, ref.ref_id)
