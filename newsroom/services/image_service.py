"""Image service: article pictures kept in object storage."""
import asyncio
import logging

from fastapi import UploadFile

from newsroom.storage import ObjectStorage, key_from_path

logger = logging.getLogger(__name__)

IMAGE_FIELDS = ("picture", "cover_image")


async def upload_images(storage: ObjectStorage, files: dict[str, UploadFile | None]) -> dict[str, str]:
    """Upload the provided image fields and return their public urls."""
    present = {field: f for field, f in files.items() if f is not None}
    if not present:
        return {}
    return await storage.upload(present)


async def delete_images(storage: ObjectStorage, paths: list[str]) -> None:
    """Remove every object named by the last segment of each path."""
    keys = [key_from_path(path) for path in paths]
    await asyncio.gather(*(storage.delete(key) for key in keys))
    logger.info("Deleted %d image(s)", len(keys))
