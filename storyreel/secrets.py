"""
API key lookup backed by the OS keychain.

Keys are read from the keychain first (Windows Credential Manager, macOS
Keychain, Secret Service on Linux) and fall back to environment variables.

Usage:
    from storyreel.secrets import get_api_key

    key = get_api_key("OPENAI_API_KEY")
"""

import os
import logging
from typing import Optional

import keyring
from keyring.errors import KeyringError, PasswordDeleteError

logger = logging.getLogger(__name__)

# Service name for keychain entries
SERVICE_NAME = "storyreel"

# Known secrets and what they unlock
KNOWN_KEYS = {
    "OPENAI_API_KEY": "OpenAI API key (narration TTS)",
    "REPLICATE_API_TOKEN": "Replicate API token (image generation)",
    "AWS_ACCESS_KEY_ID": "R2/S3 access key id (video publishing)",
    "AWS_SECRET_ACCESS_KEY": "R2/S3 secret access key (video publishing)",
}


def _from_keychain(key_name: str) -> Optional[str]:
    try:
        return keyring.get_password(SERVICE_NAME, key_name)
    except KeyringError as e:
        logger.debug("Keychain access failed for %s: %s", key_name, e)
        return None


def get_api_key(key_name: str, fallback_to_env: bool = True) -> Optional[str]:
    """
    Get an API key, checking keychain first then environment variables.

    Args:
        key_name: Name of the key (e.g., "OPENAI_API_KEY")
        fallback_to_env: If True, check environment variables if not in keychain

    Returns:
        The key value, or None if not found
    """
    value = _from_keychain(key_name)
    if value:
        logger.debug("Retrieved %s from secure keychain", key_name)
        return value

    if fallback_to_env:
        value = os.environ.get(key_name)
        if value:
            logger.debug("Retrieved %s from environment variable", key_name)
            return value

    return None


def set_api_key(key_name: str, value: str) -> bool:
    """
    Store an API key in the OS keychain.

    Returns:
        True if successful, False otherwise
    """
    try:
        keyring.set_password(SERVICE_NAME, key_name, value)
    except KeyringError as e:
        logger.error("Failed to store %s in keychain: %s", key_name, e)
        return False
    logger.info("Stored %s in secure keychain", key_name)
    return True


def delete_api_key(key_name: str) -> bool:
    """
    Delete an API key from the OS keychain.

    Returns:
        True if a stored key was removed
    """
    try:
        keyring.delete_password(SERVICE_NAME, key_name)
    except PasswordDeleteError:
        logger.warning("%s not found in keychain", key_name)
        return False
    except KeyringError as e:
        logger.error("Failed to delete %s from keychain: %s", key_name, e)
        return False
    logger.info("Deleted %s from secure keychain", key_name)
    return True


def list_api_keys() -> dict:
    """
    Report where each known key is configured.

    Returns:
        Dict mapping key names to "keychain", "env" or "not_set"
    """
    status = {}
    for key_name in KNOWN_KEYS:
        if _from_keychain(key_name):
            status[key_name] = "keychain"
        elif os.environ.get(key_name):
            status[key_name] = "env"
        else:
            status[key_name] = "not_set"
    return status
