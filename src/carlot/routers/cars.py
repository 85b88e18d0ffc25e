from typing import Annotated

from fastapi import APIRouter, Depends, File, Form, Request, UploadFile
from fastapi.concurrency import run_in_threadpool

from carlot.core.listings import Attachment, ListingService
from carlot.middleware import CurrentIdentity
from carlot.models.requests import CarRead, MessageResponse
from carlot.shared import Logger
from carlot.shared.http import get_listing_service, server_error_handler

logger = Logger(__name__).get_logger()

router = APIRouter(prefix="/api/cars", tags=["cars"])

ListingServiceDep = Annotated[ListingService, Depends(get_listing_service)]


async def read_attachments(
    images: list[UploadFile] | None, listings: ListingService
) -> list[Attachment]:
    # Browsers send an empty part when no file is picked
    uploads = [image for image in images or [] if image.filename or image.size]
    listings.check_uploads([(image.filename or "image", image.size) for image in uploads])

    return [
        Attachment(filename=image.filename or "image", data=await image.read())
        for image in uploads
    ]


async def submitted_text(request: Request, name: str, value: str | None) -> str | None:
    """
    FastAPI hands an empty form field to the handler as its None default.
    Recover the empty string so it is told apart from an absent field.
    """
    if value is not None:
        return value
    form = await request.form()
    submitted = form.get(name)
    return submitted if isinstance(submitted, str) else None


@router.post("", response_model=CarRead)
async def create_car(
    identity: CurrentIdentity,
    listings: ListingServiceDep,
    title: Annotated[str | None, Form()] = None,
    description: Annotated[str | None, Form()] = None,
    tags: Annotated[str | None, Form()] = None,
    images: Annotated[list[UploadFile] | None, File()] = None,
):
    """
    Create a listing owned by the caller. Multipart form with title,
    description, comma separated tags and one or more images.
    """
    attachments = await read_attachments(images, listings)
    logger.debug(
        "Create car for user %s with %d image(s)", identity.user_id, len(attachments)
    )
    with server_error_handler():
        return await run_in_threadpool(
            listings.create, identity, title, description, tags, attachments
        )


@router.get("", response_model=list[CarRead])
def list_cars(identity: CurrentIdentity, listings: ListingServiceDep):
    with server_error_handler():
        return listings.list_all(identity)


# Declared before /{car_id} so "search" is never read as an id
@router.get("/search", response_model=list[CarRead])
def search_cars(
    identity: CurrentIdentity,
    listings: ListingServiceDep,
    keyword: str | None = None,
):
    """Case-insensitive title search over the caller's own listings."""
    logger.debug("Search '%s' by user %s", keyword, identity.user_id)
    with server_error_handler():
        return listings.search(identity, keyword)


@router.get("/{car_id}", response_model=CarRead)
def get_car(car_id: str, identity: CurrentIdentity, listings: ListingServiceDep):
    with server_error_handler():
        return listings.get(identity, car_id)


@router.put("/{car_id}", response_model=CarRead)
async def update_car(
    car_id: str,
    request: Request,
    identity: CurrentIdentity,
    listings: ListingServiceDep,
    title: Annotated[str | None, Form()] = None,
    description: Annotated[str | None, Form()] = None,
    tags: Annotated[str | None, Form()] = None,
    images: Annotated[list[UploadFile] | None, File()] = None,
):
    """
    Update a listing owned by the caller. Attaching images replaces all
    existing images; without attachments the images are kept.
    """
    title = await submitted_text(request, "title", title)
    description = await submitted_text(request, "description", description)
    attachments = await read_attachments(images, listings)
    with server_error_handler():
        return await run_in_threadpool(
            listings.update, identity, car_id, title, description, tags, attachments
        )


@router.delete("/{car_id}", response_model=MessageResponse)
def delete_car(car_id: str, identity: CurrentIdentity, listings: ListingServiceDep):
    with server_error_handler():
        listings.delete(identity, car_id)
    return MessageResponse(message="Car deleted")
