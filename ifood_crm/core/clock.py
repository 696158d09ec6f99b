"""Current time in the configured timezone."""

from datetime import datetime

import pytz

from ifood_crm.config import get_settings


def local_tz():
    return pytz.timezone(get_settings().TIMEZONE)


def now() -> datetime:
    """Timezone-aware current instant in the configured timezone."""
    return datetime.now(local_tz())
