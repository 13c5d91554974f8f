"""Validation of Google Cloud service-account settings for the Vertex backend."""

import base64
import binascii
import re
from dataclasses import dataclass, field

_PEM_PATTERN = re.compile(
    r"-----BEGIN (?:RSA )?PRIVATE KEY-----(?P<body>.+?)-----END (?:RSA )?PRIVATE KEY-----",
    re.DOTALL,
)


@dataclass
class EnvChecks:
    has_project_id: bool = False
    has_client_email: bool = False
    has_private_key: bool = False
    private_key_format_valid: bool = False
    private_key_decodable: bool = False
    has_private_key_id: bool = False
    has_location: bool = False


@dataclass
class EnvValidationResult:
    is_valid: bool = False
    checks: EnvChecks = field(default_factory=EnvChecks)
    errors: list[str] = field(default_factory=list)
    warnings: list[str] = field(default_factory=list)


def normalize_private_key(private_key: str) -> str:
    """Turn escaped ``\\n`` sequences (common in env files) into real newlines."""
    return (private_key or "").replace("\\n", "\n").strip()


def _pem_body(private_key: str) -> str | None:
    match = _PEM_PATTERN.search(normalize_private_key(private_key))
    if not match:
        return None
    return "".join(match.group("body").split())


def validate_private_key_format(private_key: str) -> bool:
    return bool(_pem_body(private_key))


def validate_private_key_decoding(private_key: str) -> bool:
    body = _pem_body(private_key)
    if not body:
        return False
    try:
        base64.b64decode(body, validate=True)
    except (binascii.Error, ValueError):
        return False
    return True


def validate_google_cloud_env(settings) -> EnvValidationResult:
    """
    Check the Vertex AI credential settings.

    Missing project id, client email or a decodable PEM key are errors;
    missing key id and location are warnings (location is picked from
    request geography when absent).
    """
    result = EnvValidationResult()
    checks = result.checks

    if (settings.GOOGLE_PROJECT_ID or "").strip():
        checks.has_project_id = True
    else:
        result.errors.append("GOOGLE_PROJECT_ID is not set")

    client_email = (settings.GOOGLE_CLIENT_EMAIL or "").strip()
    if client_email:
        checks.has_client_email = True
        if "@" not in client_email or "." not in client_email:
            result.warnings.append("GOOGLE_CLIENT_EMAIL does not look like an email address")
    else:
        result.errors.append("GOOGLE_CLIENT_EMAIL is not set")

    private_key = settings.GOOGLE_PRIVATE_KEY or ""
    if private_key.strip():
        checks.has_private_key = True
        if validate_private_key_format(private_key):
            checks.private_key_format_valid = True
            if validate_private_key_decoding(private_key):
                checks.private_key_decodable = True
            else:
                result.errors.append("GOOGLE_PRIVATE_KEY body is not valid base64")
        else:
            result.errors.append("GOOGLE_PRIVATE_KEY must be a PEM encoded private key")
    else:
        result.errors.append("GOOGLE_PRIVATE_KEY is not set")

    if (settings.GOOGLE_PRIVATE_KEY_ID or "").strip():
        checks.has_private_key_id = True
    else:
        result.warnings.append("GOOGLE_PRIVATE_KEY_ID is not set (optional)")

    if (settings.GOOGLE_LOCATION or "").strip():
        checks.has_location = True
    else:
        result.warnings.append(
            "GOOGLE_LOCATION is not set (optional, resolved from request geography)"
        )

    result.is_valid = (
        checks.has_project_id
        and checks.has_client_email
        and checks.has_private_key
        and checks.private_key_format_valid
        and checks.private_key_decodable
    )
    return result
