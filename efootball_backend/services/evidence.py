# evidence.py
# Screenshot evidence for submitted/approved results.
# Uploads arrive as base64 (optionally a data URL) and are stored as plain files;
# entities only keep the returned reference string.

import base64
import binascii
import logging
import mimetypes
import os
import uuid
from typing import Optional

from pydantic import BaseModel

from efootball_backend.core.errors import NotFound, StorageError, ValidationFailed

logger = logging.getLogger(__name__)


class EvidenceUpload(BaseModel):
    data: str                       # "data:image/png;base64,...." or bare base64
    filename: Optional[str] = None


class EvidenceStore:
    def __init__(self, root: str, max_bytes: int):
        self.root = root
        self.max_bytes = max_bytes
        os.makedirs(root, exist_ok=True)

    def _decode(self, upload: EvidenceUpload):
        """Returns (bytes, mime type or None)."""
        mime = None
        payload = upload.data.strip()
        if payload.startswith("data:"):
            header, _, payload = payload.partition(",")
            mime = header[len("data:"):].split(";")[0] or None
            if mime and not mime.startswith("image/"):
                raise ValidationFailed(f"Evidence must be an image, got {mime}.")

        # Cheap size check before decoding (base64 is ~4/3 of the raw size)
        if len(payload) * 3 // 4 > self.max_bytes:
            raise ValidationFailed(
                f"Evidence image is too large (max {self.max_bytes // (1024 * 1024)}MB)."
            )
        try:
            raw = base64.b64decode(payload, validate=True)
        except (binascii.Error, ValueError) as e:
            raise ValidationFailed("Evidence is not valid base64 data.") from e
        if not raw:
            raise ValidationFailed("Evidence image is empty.")
        return raw, mime

    def check(self, upload: EvidenceUpload) -> None:
        """Raises ValidationFailed for an upload that save() would reject."""
        self._decode(upload)

    def save(self, owner_kind: str, owner_id: int, upload: EvidenceUpload) -> str:
        """Stores the image and returns a reference usable with path_for()."""
        raw, mime = self._decode(upload)

        ext = os.path.splitext(upload.filename or "")[1].lower()
        if not ext and mime:
            ext = mimetypes.guess_extension(mime) or ""
        reference = f"{owner_kind}-{owner_id}-{uuid.uuid4().hex[:12]}{ext or '.bin'}"

        try:
            with open(os.path.join(self.root, reference), "wb") as f:
                f.write(raw)
        except OSError as e:
            logger.error(f"Failed to store evidence {reference}: {e}")
            raise StorageError("Could not store evidence image.") from e

        logger.info(f"Evidence stored for {owner_kind} {owner_id}: {reference} ({len(raw) / 1024:.1f}KB)")
        return reference

    def path_for(self, reference: str) -> str:
        # References are flat file names; anything else is not ours
        if not reference or os.path.basename(reference) != reference:
            raise NotFound(f"Evidence {reference} not found.")
        path = os.path.join(self.root, reference)
        if not os.path.isfile(path):
            raise NotFound(f"Evidence {reference} not found.")
        return path
