"""Cross-checks between listing records and the local blob store.

Image cleanup is best-effort, so the two can drift apart: a failed delete
leaves an orphaned file behind, and a file removed by hand leaves a listing
pointing at nothing. These helpers find both.
"""

from sqlalchemy import Engine
from sqlmodel import Session, select

from carlot.models.schema import Car
from carlot.storage.blobs import LocalBlobStore


def find_orphans(engine: Engine, blobs: LocalBlobStore) -> list[str]:
    """Locators present in the upload directory that no listing references."""
    with Session(engine) as session:
        referenced = {
            locator
            for images in session.exec(select(Car.images)).all()
            for locator in images
        }

    return [locator for locator in blobs.iter_locators() if locator not in referenced]


def find_dangling(engine: Engine, blobs: LocalBlobStore) -> list[tuple[int, str]]:
    """(car id, locator) pairs whose image is missing from the upload directory."""
    with Session(engine) as session:
        cars = session.exec(select(Car)).all()
        return [
            (car.id, locator)
            for car in cars
            for locator in car.images
            if not blobs.exists(locator)
        ]
