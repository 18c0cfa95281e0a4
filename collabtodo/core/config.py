from os import getenv

class Settings:
    DATABASE_URL = getenv("DATABASE_URL", "postgresql+psycopg://collabtodo:collabtodo@db:5432/collabtodo")
    JWT_SECRET = getenv("JWT_SECRET", "dev-secret-change-in-prod")
    JWT_EXPIRE_MIN = int(getenv("JWT_EXPIRE_MIN", "1440"))  # 1 jour, comme le provider d'identité
    LOG_LEVEL = getenv("LOG_LEVEL", "INFO")
    INBOX_NAME = getenv("INBOX_NAME", "Inbox")

settings = Settings()
