from datetime import date, datetime
import pytz

from config import PROPERTY_TIMEZONE

PROPERTY_TZ = pytz.timezone(PROPERTY_TIMEZONE)


def utc_now() -> datetime:
    """Returns current time in UTC (timezone aware)"""
    return datetime.now(pytz.utc)


def get_property_now() -> datetime:
    """Returns current time in the property timezone"""
    return datetime.now(PROPERTY_TZ)


def get_operational_date() -> date:
    """Today's date in the property timezone (the date a new visit is filed under)"""
    return get_property_now().date()
