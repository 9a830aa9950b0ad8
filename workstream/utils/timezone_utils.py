"""
Timezone utility functions
"""
from datetime import datetime, time, timedelta
import pytz


def convert_utc_to_user_tz(utc_datetime, user_timezone):
    """Convert UTC datetime to user's timezone"""
    if not utc_datetime:
        return None

    # Ensure UTC timezone awareness
    if utc_datetime.tzinfo is None:
        utc_datetime = pytz.UTC.localize(utc_datetime)

    user_tz = pytz.timezone(user_timezone)
    return utc_datetime.astimezone(user_tz)


def to_naive_utc(aware_datetime):
    """Convert an aware datetime to the naive UTC form stored in the database"""
    return aware_datetime.astimezone(pytz.UTC).replace(tzinfo=None)


def is_valid_timezone(tz_name):
    return tz_name in pytz.all_timezones_set


def start_of_day(now, tz_name='UTC'):
    """Naive UTC instant at which the calendar day containing `now` begins in tz_name"""
    tz = pytz.timezone(tz_name)
    local_now = convert_utc_to_user_tz(now, tz_name)
    local_midnight = tz.localize(datetime.combine(local_now.date(), time.min))
    return to_naive_utc(local_midnight)


def get_day_window(days_ahead, now, tz_name='UTC'):
    """
    [start, end) of the calendar day `days_ahead` days after `now`

    The day is computed in tz_name; both bounds are returned as naive UTC.
    """
    tz = pytz.timezone(tz_name)
    local_now = convert_utc_to_user_tz(now, tz_name)
    target_date = local_now.date() + timedelta(days=days_ahead)

    start_local = tz.localize(datetime.combine(target_date, time.min))
    end_local = tz.localize(datetime.combine(target_date + timedelta(days=1), time.min))
    return to_naive_utc(start_local), to_naive_utc(end_local)


def parse_clock_time(value):
    """Parse an "HH:MM" string into a time"""
    return datetime.strptime(value, '%H:%M').time()


def is_within_quiet_hours(now, start_time, end_time, tz_name):
    """
    Check if the UTC instant `now` falls inside a daily quiet-hours window

    start_time/end_time are "HH:MM" strings in tz_name. A window whose end is
    earlier than its start wraps midnight (e.g. 22:00-08:00). Equal bounds
    mean an empty window.
    """
    local_time = convert_utc_to_user_tz(now, tz_name).time()
    start = parse_clock_time(start_time)
    end = parse_clock_time(end_time)

    if start == end:
        return False
    if start < end:
        return start <= local_time < end
    return local_time >= start or local_time < end
