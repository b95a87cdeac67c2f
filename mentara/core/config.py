import os
from typing import List, Any
from pydantic_settings import BaseSettings
from pydantic import Field, field_validator

class Settings(BaseSettings):
    # Environment
    ENVIRONMENT: str = Field(default="development", env="ENVIRONMENT")

    # API Configuration
    PROJECT_NAME: str = "Mentara API"

    # CORS Configuration
    CORS_ORIGINS: Any = Field(
        default=["http://localhost:3000", "http://localhost:5173"],
        env="CORS_ORIGINS"
    )

    @field_validator('CORS_ORIGINS', mode='before')
    @classmethod
    def parse_cors_origins(cls, v):
        if isinstance(v, str):
            if v.strip() == '':
                return ["http://localhost:3000", "http://localhost:5173"]
            return [origin.strip() for origin in v.split(',') if origin.strip()]
        return v

    # Gemini AI Configuration
    GEMINI_API_KEY: str = Field(default="", env="GEMINI_API_KEY")
    GEMINI_MODEL: str = Field(default="gemini-2.0-flash", env="GEMINI_MODEL")
    CHAT_TEMPERATURE: float = Field(default=0.7, env="CHAT_TEMPERATURE")
    MAX_OUTPUT_TOKENS: int = Field(default=1000, env="MAX_OUTPUT_TOKENS")

    # Chat history
    CHAT_HISTORY_LIMIT: int = int(os.getenv("CHAT_HISTORY_LIMIT", "50"))
    AI_CONTEXT_MESSAGES: int = int(os.getenv("AI_CONTEXT_MESSAGES", "10"))

    # Crisis detection keywords
    CRISIS_KEYWORDS: str = Field(
        default="suicide,kill myself,end it all,don't want to live,self harm,hurt myself,not worth living,better off dead,end my life",
        env="CRISIS_KEYWORDS"
    )

    @property
    def crisis_keywords_list(self) -> List[str]:
        """Get crisis keywords as a list"""
        return [keyword.strip() for keyword in self.CRISIS_KEYWORDS.split(",") if keyword.strip()]

    # Logging
    LOG_LEVEL: str = Field(default="INFO", env="LOG_LEVEL")

    # Key-value store
    KV_BACKEND: str = Field(default="mongo", env="KV_BACKEND")  # "mongo" or "memory"
    MONGO_URI: str = Field(default="mongodb://localhost:27017", env="MONGO_URI")
    MONGO_DB_NAME: str = os.getenv("MONGO_DB_NAME", "mentara")
    KV_COLLECTION: str = Field(default="kv_store", env="KV_COLLECTION")

    # JWT
    JWT_SECRET: str = Field(default="SuperSecretKey123", env="JWT_SECRET")
    JWT_EXPIRE_MINUTES: int = Field(default=60 * 12, env="JWT_EXPIRE_MINUTES")

    # Built-in portal credentials
    ADMIN_EMAIL: str = Field(default="admin@mentara.com", env="ADMIN_EMAIL")
    ADMIN_PASSWORD: str = Field(default="admin123", env="ADMIN_PASSWORD")
    COUNSELOR_EMAIL: str = Field(default="counselor@mentara.com", env="COUNSELOR_EMAIL")
    COUNSELOR_PASSWORD: str = Field(default="counselor123", env="COUNSELOR_PASSWORD")

    # Password management
    PASSWORD_TOKEN_TTL_MINUTES: int = Field(default=60, env="PASSWORD_TOKEN_TTL_MINUTES")
    TEMP_PASSWORD_TTL_MINUTES: int = Field(default=15, env="TEMP_PASSWORD_TTL_MINUTES")

    # Message validation
    MAX_MESSAGE_LENGTH: int = Field(default=2000, env="MAX_MESSAGE_LENGTH")

    class Config:
        env_file = ".env"
        case_sensitive = True
        extra = "ignore"

# Create settings instance
settings = Settings()
