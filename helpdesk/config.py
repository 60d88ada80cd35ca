import os
from dotenv import load_dotenv

load_dotenv()

DATABASE_URL = os.getenv("DATABASE_URL", "sqlite:///./helpdesk.db")

SECRET_KEY = os.getenv("SECRET_KEY", "CHANGE_ME")
ALGORITHM = os.getenv("ALGORITHM", "HS256")
ACCESS_TOKEN_EXPIRE_MINUTES = int(os.getenv("ACCESS_TOKEN_EXPIRE_MINUTES", "1440"))

# vazio = derivada do SECRET_KEY
FERNET_KEY = os.getenv("FERNET_KEY", "")

# atraso do som de notificação quando quem abre o chamado não é admin
NOTIFY_DELAY_MS = int(os.getenv("NOTIFY_DELAY_MS", "500"))

SEED_DEMO = os.getenv("SEED_DEMO", "1") not in ("0", "false", "False", "")
DEMO_PASSWORD = os.getenv("DEMO_PASSWORD", "helpdesk123")

LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")
CORS_ORIGINS = [o.strip() for o in os.getenv("CORS_ORIGINS", "*").split(",") if o.strip()]
