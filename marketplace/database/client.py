from functools import lru_cache

from supabase import create_client, Client


@lru_cache
def get_supabase_client(url: str, key: str) -> Client:
  """Create (once per URL/key pair) the Supabase client used by the repositories."""
  if not url or not key:
    raise ValueError("SUPABASE_URL and SUPABASE_KEY must be set for the supabase storage backend")
  return create_client(url, key)
