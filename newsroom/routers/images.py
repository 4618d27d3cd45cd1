from fastapi import APIRouter, Depends, File, UploadFile

from newsroom.dependencies import get_storage, require_staff
from newsroom.schemas import ImageDelete
from newsroom.services import image_service
from newsroom.storage import ObjectStorage

router = APIRouter(
    prefix="/api/v1/images",
    tags=["images"],
    dependencies=[Depends(require_staff)],
)


@router.post("/upload", status_code=201, response_model=dict[str, str])
async def upload_images(
    picture: UploadFile | None = File(None),
    cover_image: UploadFile | None = File(None),
    storage: ObjectStorage = Depends(get_storage),
):
    return await image_service.upload_images(
        storage, {"picture": picture, "cover_image": cover_image}
    )


@router.post("")
async def delete_images(data: ImageDelete, storage: ObjectStorage = Depends(get_storage)):
    await image_service.delete_images(storage, data.paths)
    return {}
