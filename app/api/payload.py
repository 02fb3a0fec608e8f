import json
from dataclasses import dataclass, field
from typing import Any, AsyncIterator, Dict, Optional

from fastapi import Depends, Request
from starlette.datastructures import FormData, UploadFile

from app.errors import ErrorKind, EventAPIError, UploadRejected
from app.uploads import IMAGE_FIELD, ImageStorage, get_image_storage

FORM_CONTENT_TYPES = ("multipart/form-data", "application/x-www-form-urlencoded")


@dataclass
class EventPayload:
    """Event fields submitted with a create or update request."""
    fields: Dict[str, Any] = field(default_factory=dict)
    image: Optional[UploadFile] = None

    def get(self, name: str) -> Any:
        return self.fields.get(name)

    def supplied(self, name: str) -> bool:
        value = self.fields.get(name)
        if isinstance(value, str):
            return bool(value.strip())
        return value is not None


def _payload_from_form(form: FormData, storage: ImageStorage) -> EventPayload:
    fields: Dict[str, Any] = {}
    files = []
    for key, value in form.multi_items():
        if isinstance(value, UploadFile):
            # Browsers send an empty part when no file was chosen
            if value.filename:
                files.append((key, value))
        else:
            fields[key] = value

    if len(files) > 1:
        raise UploadRejected(
            ErrorKind.TOO_MANY_FILES,
            "Too many files",
            message="Only one image may be uploaded per request",
        )

    image = None
    if files:
        key, image = files[0]
        if key != IMAGE_FIELD:
            raise UploadRejected(
                ErrorKind.UNEXPECTED_FILE_FIELD,
                "Unexpected field",
                message=f"Files must be sent in the '{IMAGE_FIELD}' field",
                field=key,
            )
        storage.inspect(image)

    return EventPayload(fields=fields, image=image)


async def read_event_payload(
    request: Request, storage: ImageStorage = Depends(get_image_storage)
) -> AsyncIterator[EventPayload]:
    """Parse the request body into an EventPayload.

    Multipart uploads go through the upload gate here, so a rejected file
    never reaches the route handler.
    """
    content_type = request.headers.get("content-type", "").split(";")[0].strip().lower()

    if content_type in FORM_CONTENT_TYPES:
        form = await request.form()
        try:
            payload = _payload_from_form(form, storage)
        except EventAPIError:
            await form.close()
            raise
        try:
            yield payload
        finally:
            await form.close()
        return

    body = await request.body()
    if content_type == "application/json" and body.strip():
        try:
            data = json.loads(body)
        except ValueError:
            raise EventAPIError(ErrorKind.INVALID_BODY, "Request body is not valid JSON")
        if not isinstance(data, dict):
            raise EventAPIError(ErrorKind.INVALID_BODY, "Request body must be a JSON object")
        yield EventPayload(fields=data)
        return

    yield EventPayload()
