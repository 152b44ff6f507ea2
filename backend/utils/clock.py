from datetime import datetime
import os

import pytz
from dotenv import load_dotenv

load_dotenv()

APP_TIMEZONE = pytz.timezone(os.getenv("APP_TIMEZONE", "Asia/Manila"))


def now() -> datetime:
    """Timezone-aware current time in the office's timezone."""
    return datetime.now(APP_TIMEZONE)
