from pathlib import Path

from sqlalchemy import Engine
from sqlmodel import create_engine

from carlot.shared import load_config
from carlot.storage import LocalBlobStore
from carlot.storage.reconcile import find_dangling, find_orphans

config = load_config()


def prune(engine: Engine, blobs: LocalBlobStore, delete: bool = False):
    orphans = find_orphans(engine, blobs)

    if orphans:
        print(f"[•] Found {len(orphans)} orphaned image(s):\n")
        for locator in orphans:
            print(f"  {locator}")
    else:
        print("[✔] No orphaned images")

    if orphans and delete:
        removed = blobs.delete_all(orphans)
        print(f"\n[✔] Removed {removed} of {len(orphans)} orphaned image(s)")

    for car_id, locator in find_dangling(engine, blobs):
        print(f"[!] Car {car_id} references missing image {locator}")


if __name__ == "__main__":
    import argparse

    def parse_args():
        parser = argparse.ArgumentParser(
            description="List (and optionally remove) uploaded images no listing references"
        )
        parser.add_argument(
            "--delete", action="store_true", help="Remove the orphaned images"
        )
        parser.add_argument("--db", type=str, help="SQLAlchemy database URL override")
        parser.add_argument("--files", type=str, help="Upload directory override")
        return parser.parse_args()

    args = parse_args()
    engine = create_engine(args.db or config.database.path)
    blobs = LocalBlobStore(
        Path(args.files or config.paths.files),
        max_file_size=config.files.max_file_size,
    )

    prune(engine, blobs, delete=args.delete)
