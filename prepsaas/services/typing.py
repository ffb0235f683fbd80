from datetime import datetime, timezone

def to_iso(value) -> str:
    # Supabase returns ISO strings or datetimes, normalize both
    if isinstance(value, str):
        return value
    if isinstance(value, datetime):
        return value.isoformat()
    return str(value)

def parse_dt(value) -> datetime:
    if not isinstance(value, datetime):
        # PostgREST may emit a trailing Z, fromisoformat wants an offset
        value = datetime.fromisoformat(str(value).replace("Z", "+00:00"))
    # timestamp columns without a zone are stored as UTC
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return value

def utc_now() -> datetime:
    return datetime.now(timezone.utc)
