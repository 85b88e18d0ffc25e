from sqlmodel import col, select

from carlot.core.errors import InvalidArgument, NotFound
from carlot.models.requests import CarPatch, CarRead
from carlot.models.schema import Car
from carlot.shared import Logger
from carlot.shared.db import Database, upstream_errors

logger = Logger(__name__).get_logger()

CAR_NOT_FOUND = "Car not found"


def escape_like(keyword: str) -> str:
    return keyword.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")


class ListingStore:
    """
    Persistence of car listings. Every query is filtered by owner, so a listing
    owned by someone else looks exactly like one that does not exist.
    Returns detached CarRead snapshots, never live rows.
    """

    def __init__(self, database: Database):
        self.database = database

    def create(
        self,
        owner_id: int,
        title: str,
        description: str,
        tags: list[str],
        images: list[str],
    ) -> CarRead:
        with upstream_errors("create"), self.database.session() as session:
            car = Car(
                owner_id=owner_id,
                title=title,
                description=description,
                tags=list(tags),
                images=list(images),
            )
            session.add(car)
            session.commit()
            session.refresh(car)
            logger.info("Created car %s for user %s", car.id, owner_id)
            return CarRead.model_validate(car)

    def list_all(self, owner_id: int) -> list[CarRead]:
        with upstream_errors("list"), self.database.session() as session:
            cars = session.exec(select(Car).where(Car.owner_id == owner_id)).all()
            return [CarRead.model_validate(car) for car in cars]

    def get_by_id(self, owner_id: int, car_id: int) -> CarRead:
        with upstream_errors("get"), self.database.session() as session:
            car = session.exec(
                select(Car).where(Car.id == car_id, Car.owner_id == owner_id)
            ).first()
            if car is None:
                raise NotFound(CAR_NOT_FOUND)
            return CarRead.model_validate(car)

    def search_by_title(self, owner_id: int, keyword: str) -> list[CarRead]:
        if not keyword or not keyword.strip():
            raise InvalidArgument("Search keyword is required")

        pattern = f"%{escape_like(keyword)}%"
        with upstream_errors("search"), self.database.session() as session:
            cars = session.exec(
                select(Car).where(
                    Car.owner_id == owner_id,
                    col(Car.title).ilike(pattern, escape="\\"),
                )
            ).all()
            logger.debug(
                "Search '%s' for user %s matched %d car(s)", keyword, owner_id, len(cars)
            )
            return [CarRead.model_validate(car) for car in cars]

    def update_by_id(
        self, owner_id: int, car_id: int, patch: CarPatch
    ) -> tuple[list[str], CarRead]:
        """
        Apply the patch to the listing matching both id and owner, inside one
        locked transaction. Returns the images held before the update together
        with the updated listing.
        """
        changes = patch.model_dump(exclude_none=True)

        with upstream_errors("update"), self.database.session() as session:
            car = session.exec(
                select(Car)
                .where(Car.id == car_id, Car.owner_id == owner_id)
                .with_for_update()
            ).first()
            if car is None:
                raise NotFound(CAR_NOT_FOUND)

            previous_images = list(car.images)
            for field, value in changes.items():
                setattr(car, field, value)

            session.add(car)
            session.commit()
            session.refresh(car)
            logger.info(
                "Updated car %s for user %s (fields: %s)",
                car_id,
                owner_id,
                ", ".join(sorted(changes)) or "none",
            )
            return previous_images, CarRead.model_validate(car)

    def delete_by_id(self, owner_id: int, car_id: int) -> CarRead:
        with upstream_errors("delete"), self.database.session() as session:
            car = session.exec(
                select(Car)
                .where(Car.id == car_id, Car.owner_id == owner_id)
                .with_for_update()
            ).first()
            if car is None:
                raise NotFound(CAR_NOT_FOUND)

            snapshot = CarRead.model_validate(car)
            session.delete(car)
            session.commit()
            logger.info("Deleted car %s for user %s", car_id, owner_id)
            return snapshot
