import base64

import pytest

from efootball_backend.core.errors import NotFound, ValidationFailed
from efootball_backend.services.evidence import EvidenceStore, EvidenceUpload

PNG_BYTES = b"\x89PNG\r\n\x1a\n fake"


def upload(raw=PNG_BYTES, mime="image/png", filename=None):
    data = base64.b64encode(raw).decode()
    if mime:
        data = f"data:{mime};base64,{data}"
    return EvidenceUpload(data=data, filename=filename)


class TestEvidenceStore:
    def test_bare_base64_uses_filename_extension(self, evidence):
        reference = evidence.save("match", 4, upload(mime=None, filename="Screen.JPG"))
        assert reference.startswith("match-4-")
        assert reference.endswith(".jpg")

    def test_rejects_non_images(self, evidence):
        with pytest.raises(ValidationFailed):
            evidence.save("result", 1, upload(mime="application/pdf"))

    def test_rejects_invalid_base64(self, evidence):
        with pytest.raises(ValidationFailed):
            evidence.save("result", 1, EvidenceUpload(data="data:image/png;base64,***"))

    def test_rejects_oversized_payload(self, tmp_path):
        small = EvidenceStore(str(tmp_path / "small"), max_bytes=16)
        with pytest.raises(ValidationFailed):
            small.save("result", 1, upload(raw=b"x" * 64))

    def test_path_for_rejects_unknown_and_traversal(self, evidence):
        with pytest.raises(NotFound):
            evidence.path_for("result-1-missing.png")
        with pytest.raises(NotFound):
            evidence.path_for("../teams.json")
