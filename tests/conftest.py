import base64
import json
from datetime import datetime, timedelta, timezone

import pytest
from cryptography import x509
from cryptography.hazmat.primitives import hashes, serialization
from cryptography.hazmat.primitives.asymmetric import ec, rsa
from cryptography.x509.oid import NameOID

from vaultbridge.core.config import AzulConfig, CybersourceConfig, SegpayConfig, VaultConfig
from vaultbridge.vault.credentials import StaticCredentialProvider

VAULT_URL = "https://vault.example.com"
VAULT_ID = "v123"
DETOKENIZE_URL = f"{VAULT_URL}/v1/vaults/{VAULT_ID}/detokenize"
TOKEN_URI = "https://auth.example.com/v1/auth/sa/oauth/token"


def b64(payload: str | bytes | dict) -> str:
    """Base64-encode a body the way the function runtime delivers it."""
    if isinstance(payload, dict):
        payload = json.dumps(payload)
    if isinstance(payload, str):
        payload = payload.encode("utf-8")
    return base64.b64encode(payload).decode("ascii")


def event(body: str | bytes | dict, **headers: str) -> dict:
    return {
        "BodyContent": b64(body),
        "Headers": {name.replace("_", "-"): [value] for name, value in headers.items()},
    }


def vault_records(*pairs: tuple[str, str]) -> dict:
    return {"records": [{"token": t, "valueType": "STRING", "value": v} for t, v in pairs]}


@pytest.fixture
def rsa_private_pem() -> str:
    key = rsa.generate_private_key(public_exponent=65537, key_size=2048)
    return key.private_bytes(
        encoding=serialization.Encoding.PEM,
        format=serialization.PrivateFormat.PKCS8,
        encryption_algorithm=serialization.NoEncryption(),
    ).decode("utf-8")


@pytest.fixture
def service_account(rsa_private_pem) -> dict:
    return {
        "clientID": "client-1",
        "keyID": "key-1",
        "tokenURI": TOKEN_URI,
        "privateKey": rsa_private_pem,
    }


@pytest.fixture
def vault_config() -> VaultConfig:
    return VaultConfig(
        vault_url=VAULT_URL,
        vault_id=VAULT_ID,
        credentials='{"clientID": "client-1"}',
        vault_max_attempts=2,
    )


@pytest.fixture
def credentials() -> StaticCredentialProvider:
    return StaticCredentialProvider("bearer-abc")


@pytest.fixture
def azul_config() -> AzulConfig:
    return AzulConfig(psp_url="https://pagos.azul.example/api")


@pytest.fixture
def cybersource_config() -> CybersourceConfig:
    return CybersourceConfig(
        merchant_secret_key=base64.b64encode(b"super-secret-shared-key").decode("ascii"),
        merchant_key_id="k1",
        merchant_id="m1",
        request_host="api.example.com",
        resource_path="/pay",
    )


@pytest.fixture
def segpay_config() -> SegpayConfig:
    return SegpayConfig(auth_url="https://srs.segpay.example/auth")


def escaped(pem: str) -> str:
    """PEM text as it arrives in a header: JSON-string-escaped newlines."""
    return pem.replace("\n", "\\n")


@pytest.fixture(scope="session")
def client_identity() -> tuple[str, str]:
    """Self-signed client certificate and key as PEM text."""
    key = ec.generate_private_key(ec.SECP256R1())
    name = x509.Name([x509.NameAttribute(NameOID.COMMON_NAME, "vaultbridge-test")])
    now = datetime.now(timezone.utc)
    cert = (
        x509.CertificateBuilder()
        .subject_name(name)
        .issuer_name(name)
        .public_key(key.public_key())
        .serial_number(x509.random_serial_number())
        .not_valid_before(now - timedelta(days=1))
        .not_valid_after(now + timedelta(days=1))
        .sign(key, hashes.SHA256())
    )
    cert_pem = cert.public_bytes(serialization.Encoding.PEM).decode()
    key_pem = key.private_bytes(
        encoding=serialization.Encoding.PEM,
        format=serialization.PrivateFormat.PKCS8,
        encryption_algorithm=serialization.NoEncryption(),
    ).decode()
    return cert_pem, key_pem
