import secrets
import string
from datetime import timedelta
from fastapi import Depends, HTTPException
from fastapi.security import OAuth2PasswordBearer
from jose import jwt, JWTError
from passlib.context import CryptContext
from mentara.core.config import settings
from mentara.core.utils import utc_now
from typing import Dict, Any, Optional

oauth2_scheme = OAuth2PasswordBearer(tokenUrl="/admin/login", auto_error=False)

SECRET_KEY = settings.JWT_SECRET
ALGORITHM = "HS256"

pwd_context = CryptContext(schemes=["pbkdf2_sha256"], deprecated="auto")

TEMP_PASSWORD_CHARSET = string.ascii_letters + string.digits + "!@#$%^&*"


def create_access_token(subject: str, role: str, email: Optional[str] = None) -> str:
    expire = utc_now() + timedelta(minutes=settings.JWT_EXPIRE_MINUTES)
    payload = {"sub": subject, "role": role, "email": email, "exp": expire}
    return jwt.encode(payload, SECRET_KEY, algorithm=ALGORITHM)


def decode_access_token(token: str) -> Dict[str, Any]:
    """
    Decode a portal JWT and return the minimal user object.
    Raises HTTPException(401) on any decoding problem.
    """
    try:
        payload = jwt.decode(token, SECRET_KEY, algorithms=[ALGORITHM])
    except JWTError:
        raise HTTPException(status_code=401, detail="Invalid or expired token")

    user_id = payload.get("sub")
    if not user_id:
        raise HTTPException(status_code=401, detail="Invalid token payload")
    return {
        "id": user_id,
        "email": payload.get("email"),
        "role": payload.get("role", "student")
    }


async def get_current_user(token: Optional[str] = Depends(oauth2_scheme)):
    if not token:
        raise HTTPException(status_code=401, detail="Not authenticated")
    return decode_access_token(token)


async def get_optional_user(token: Optional[str] = Depends(oauth2_scheme)) -> Optional[Dict[str, Any]]:
    """Like get_current_user, but anonymous requests resolve to None."""
    if not token:
        return None
    return decode_access_token(token)


def require_roles(*roles):
    """
    Role-based access dependency.
    Example:
        @router.get("/admin", dependencies=[Depends(require_roles("admin"))])
    """
    def role_checker(current_user=Depends(get_current_user)):
        if current_user["role"] not in roles:
            raise HTTPException(status_code=403, detail="Access forbidden")
        return current_user

    return role_checker


def hash_password(password: str) -> str:
    return pwd_context.hash(password)


def verify_password(password: str, stored_hash: Optional[str]) -> bool:
    if not stored_hash or not pwd_context.identify(stored_hash):
        return False
    return pwd_context.verify(password, stored_hash)


def generate_secure_token() -> str:
    """32 random bytes, hex encoded."""
    return secrets.token_hex(32)


def generate_secure_password(length: int = 16) -> str:
    return "".join(secrets.choice(TEMP_PASSWORD_CHARSET) for _ in range(length))


class SafetyService:
    """Service for message validation and crisis detection"""

    def __init__(self):
        self.crisis_keywords = settings.crisis_keywords_list

    def validate_message(self, message: str) -> Dict[str, Any]:
        """Validate message content"""
        if not message or len(message.strip()) == 0:
            return {
                "is_valid": False,
                "reason": "Message cannot be empty",
                "sanitized_text": ""
            }

        sanitized = message.strip()

        if len(sanitized) > settings.MAX_MESSAGE_LENGTH:
            return {
                "is_valid": False,
                "reason": f"Message too long (max {settings.MAX_MESSAGE_LENGTH} characters)",
                "sanitized_text": sanitized[:settings.MAX_MESSAGE_LENGTH]
            }

        return {
            "is_valid": True,
            "reason": "Message is valid",
            "sanitized_text": sanitized
        }

    def detect_crisis(self, message: str) -> Dict[str, Any]:
        """Detect crisis indicators in message"""
        message_lower = message.lower()
        matched_patterns = [kw for kw in self.crisis_keywords if kw.lower() in message_lower]

        severe_distress = ["cant take it", "can't take it", "breaking point", "give up", "no way out"]
        distress_patterns = [p for p in severe_distress if p in message_lower]

        if matched_patterns:
            severity = "high"
        elif distress_patterns:
            severity = "medium"
        else:
            severity = "none"

        return {
            "is_crisis": severity != "none",
            "severity": severity,
            "matched_patterns": matched_patterns + distress_patterns
        }

# Create safety service instance
safety_service = SafetyService()
