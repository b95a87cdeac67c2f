# core/keys.py
"""
Key builders for every record family kept in the key-value store.

Keys are ``<family>:<part>[:<part>]``. Parts may not contain the separator, so
one family's prefix can never match another family's keys.
"""

from mentara.core.exceptions import InvalidKeyError

SEPARATOR = ":"

CONVERSATION = "conversation"
CONVERSATION_LIST = "conversations"
USER_CONTEXT = "user_context"
USER = "user"
SESSION = "session"
NOTIFICATION = "notification"
AUDIT = "audit"
PASSWORD_TOKEN = "password_token"
TEMP_PASSWORD = "temp_password"
CATALOG = "catalog"


def _key(family: str, *parts: str) -> str:
    for part in parts:
        part = str(part)
        if not part:
            raise InvalidKeyError(f"Invalid id for '{family}': must not be empty")
        if SEPARATOR in part:
            raise InvalidKeyError(f"Invalid id {part!r}: must not contain '{SEPARATOR}'")
    return SEPARATOR.join([family, *(str(p) for p in parts)])


def prefix(family: str) -> str:
    return family + SEPARATOR


def conversation_key(user_id: str, conversation_id: str) -> str:
    return _key(CONVERSATION, user_id, conversation_id)


def conversation_list_key(user_id: str) -> str:
    return _key(CONVERSATION_LIST, user_id)


def user_context_key(user_id: str) -> str:
    return _key(USER_CONTEXT, user_id)


def user_key(user_id: str) -> str:
    return _key(USER, user_id)


def session_key(session_id: str) -> str:
    return _key(SESSION, session_id)


def notification_key(notification_id: str) -> str:
    return _key(NOTIFICATION, notification_id)


def audit_key(audit_id: str) -> str:
    return _key(AUDIT, audit_id)


def password_token_key(token_id: str) -> str:
    return _key(PASSWORD_TOKEN, token_id)


def temp_password_key(user_id: str) -> str:
    return _key(TEMP_PASSWORD, user_id)


def catalog_key(name: str) -> str:
    return _key(CATALOG, name)
