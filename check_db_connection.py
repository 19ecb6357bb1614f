import asyncio
import sys
from core.config import settings
from core.errors import AuthorizationDenied, FieldVisitError
from core.paths import VISITS
from core.store import DocumentStore

async def check_connection() -> bool:
    print("--- Checking MongoDB Connection ---")
    print(f"Connection String (masked): {settings.final_mongo_uri.split('@')[-1] if '@' in settings.final_mongo_uri else '...local...'}")

    store = DocumentStore()
    try:
        await store.ping()
        print("✅ Connection successful!")

        # Tells whether visit lists will use the flat query or the per-field fallback.
        try:
            await store.collection_group(VISITS, limit=1)
            print("✅ Cross-hierarchy visit query allowed.")
        except AuthorizationDenied:
            print("⚠️ Cross-hierarchy visit query denied; visits will be read field by field.")
        return True
    except FieldVisitError as e:
        print("❌ Connection failed!")
        print(f"Error: {e}")
        return False
    finally:
        await store.close()

if __name__ == "__main__":
    if asyncio.run(check_connection()):
        sys.exit(0)
    else:
        sys.exit(1)
