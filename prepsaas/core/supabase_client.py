from supabase import ClientOptions, create_client, Client
from .config import settings

_supabase: Client | None = None

def get_supabase() -> Client:
    global _supabase
    if _supabase is None:
        # AnyUrl must be cast, create_client expects a plain str
        _supabase = create_client(
            str(settings.SUPABASE_URL),
            str(settings.SUPABASE_SERVICE_ROLE_KEY),
            options=ClientOptions(schema=settings.SUPABASE_SCHEMA),
        )
    return _supabase
