from impact_flow.config import settings
from impact_flow.db.database import engine
from impact_flow.db.init_db import ensure_database_directory, reset_database
from impact_flow.storage.snapshots import get_snapshot_store


def reset_all():
    """Drop and recreate the service database and remove the embedded snapshot."""
    print(f"Resetting service database at {settings.SERVER_DATABASE_URL}...")
    ensure_database_directory(settings.SERVER_DATABASE_URL)
    reset_database(engine)

    store = get_snapshot_store(settings)
    if store.delete(settings.SNAPSHOT_KEY):
        print(f"Deleted SQLite snapshot '{settings.SNAPSHOT_KEY}'")
    else:
        print(f"No SQLite snapshot '{settings.SNAPSHOT_KEY}' to delete")

    print("Reset complete. Run 'python run.py' to start the service.")


if __name__ == "__main__":
    confirm = input("This will DELETE ALL DATA in the service database and snapshot. Are you sure? (y/n): ")
    if confirm.lower() == 'y':
        reset_all()
    else:
        print("Operation cancelled.")
