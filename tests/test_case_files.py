import pytest

from conftest import login_headers, register
from mediator.api.utils import get_storage_client


class FakeS3:
    def __init__(self):
        self.objects = {}

    def upload_fileobj(self, fileobj, bucket, key, ExtraArgs=None):
        self.objects[key] = {"body": fileobj.read(), "bucket": bucket, "extra": ExtraArgs}

    def generate_presigned_url(self, operation, Params=None, ExpiresIn=3600):
        return f"https://s3.example.com/{Params['Bucket']}/{Params['Key']}?expires={ExpiresIn}"


@pytest.fixture
def s3(app):
    fake = FakeS3()
    app.dependency_overrides[get_storage_client] = lambda: fake
    return fake


def test_upload_and_list(client, s3, party_a, party_b, active_case):
    case_id = active_case["id"]
    res = client.post(
        f"/cases/{case_id}/files",
        files={"file": ("Fence Quote.PDF", b"%PDF-1.4 quote", "application/pdf")},
        headers=party_a["headers"],
    )
    assert res.status_code == 200, res.text
    record = res.json()
    assert record["file_name"] == "Fence Quote.PDF"
    assert record["file_size"] == len(b"%PDF-1.4 quote")
    assert record["file_path"].startswith(f"case-files/{case_id}/")
    assert record["file_path"].endswith(".pdf")

    stored = s3.objects[record["file_path"]]
    assert stored["body"] == b"%PDF-1.4 quote"
    assert stored["extra"]["ContentType"] == "application/pdf"

    listed = client.get(f"/cases/{case_id}/files", headers=party_b["headers"]).json()
    assert [f["id"] for f in listed] == [record["id"]]
    assert listed[0]["download_url"].startswith("https://s3.example.com/")


def test_outsiders_cannot_upload(client, s3, active_case):
    register(client, "casey@example.com", "Casey Poe")
    outsider = login_headers(client, "casey@example.com")
    res = client.post(
        f"/cases/{active_case['id']}/files", files={"file": ("notes.txt", b"hello", "text/plain")}, headers=outsider
    )
    assert res.status_code == 403
    assert s3.objects == {}
    assert client.get(f"/cases/{active_case['id']}/files", headers=outsider).status_code == 403
