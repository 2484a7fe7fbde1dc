"""
Store selection
"""

from extension_blocklist.store.json_file import JsonFileStore
from extension_blocklist.store.supabase import SupabaseStore


def create_store(config, logger):
    """
    Initialize the configured extension store

    Args:
        config: Application configuration
        logger: Logger instance

    Returns:
        ExtensionStore
    """
    backend = config.storage.backend.lower()

    if backend == 'supabase':
        if not config.supabase.url or not config.supabase.api_key:
            raise ValueError("Supabase backend requires SUPABASE_URL and SUPABASE_SERVICE_ROLE_KEY")
        logger.info(f"Using Supabase store at {config.supabase.url} (table: {config.supabase.table})")
        return SupabaseStore(config.supabase, logger)
    elif backend == 'json':
        logger.info(f"Using JSON file store at {config.storage.path}")
        return JsonFileStore(config.storage, logger)
    else:
        raise ValueError(f"Unsupported storage backend: {backend}")
