"""
Shared configuration and helpers
"""

import os
import logging
import uuid
from datetime import datetime, timezone
from motor.motor_asyncio import AsyncIOMotorClient
from dotenv import load_dotenv
from pathlib import Path

# Load .env
ROOT_DIR = Path(__file__).parent
load_dotenv(ROOT_DIR / '.env')

logger = logging.getLogger("config")

# MongoDB
MONGO_URL = os.environ.get('MONGO_URL', 'mongodb://localhost:27017')
DB_NAME = os.environ.get('DB_NAME', 'studio_ops')

client = AsyncIOMotorClient(MONGO_URL)
db = client[DB_NAME]

logger.info(f"Using database: {DB_NAME}")

# CORS
CORS_ORIGINS = os.environ.get('CORS_ORIGINS', '*').split(',')



# ==================== HELPERS ====================

def now_iso() -> str:
    """Current UTC time as ISO string"""
    return datetime.now(timezone.utc).isoformat()


def new_id() -> str:
    """Document id (uuid4 string)"""
    return str(uuid.uuid4())
