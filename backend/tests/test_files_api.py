from __future__ import annotations
import io
import pytest
from PIL import Image
from sqlalchemy import select
from entrydesk.models.entry import Entry
from entrydesk.models.setting import Setting
from conftest import auth, make_user
from records import basic_info, preliminary

VIDEO = b"\x00\x00\x00\x18ftypmp42" + b"\x00" * 64


def _png() -> bytes:
    buf = io.BytesIO()
    Image.new("RGB", (8, 8), (200, 30, 30)).save(buf, format="PNG")
    return buf.getvalue()

async def _upload(client, user, data, file_type, purpose, name="upload.bin", content_type="application/octet-stream"):
    return await client.post(
        "/entries/me/files",
        headers=auth(user),
        files={"file": (name, data, content_type)},
        data={"file_type": file_type, "purpose": purpose},
    )

async def _close_preliminary(db):
    async with db() as s:
        s.add(Setting(key="music_info_deadline", value="2020-01-01T00:00:00+09:00"))
        await s.commit()

async def _start(client, user):
    hdrs = auth(user)
    await client.put("/entries/me/stages/basic_info", headers=hdrs, json=basic_info())
    r = await client.put("/entries/me/stages/preliminary", headers=hdrs, json=preliminary())
    assert r.json()["state"]["missing"] == ["preliminary_video"]


@pytest.mark.asyncio
async def test_upload_needs_an_entry(client, participant):
    r = await _upload(client, participant, VIDEO, "video", "preliminary", "v.mp4", "video/mp4")
    assert r.status_code == 404

@pytest.mark.asyncio
async def test_preliminary_video_completes_the_stage(client, db, storage, participant):
    await _start(client, participant)
    r = await _upload(client, participant, VIDEO, "video", "preliminary", "v.mp4", "video/mp4")
    assert r.status_code == 201, r.text
    body = r.json()
    assert body["replaced"] == 0
    assert body["file"]["mime_type"] == "video/mp4"
    assert body["file"]["file_path"].endswith(".mp4")
    assert body["file"]["url"].startswith("https://storage.test/")
    assert body["file"]["file_path"] in storage.objects

    async with db() as s:
        entry = (await s.execute(select(Entry).where(Entry.user_id == participant.id))).scalars().one()
        assert entry.preliminary_status == "complete"
    dash = (await client.get("/entries/me", headers=auth(participant))).json()
    assert dash["stages"]["preliminary"]["complete"] is True

@pytest.mark.asyncio
async def test_single_slot_upload_replaces_the_old_file(client, storage, participant):
    await _start(client, participant)
    first = (await _upload(client, participant, VIDEO, "video", "preliminary", "a.mp4", "video/mp4")).json()
    second = (await _upload(client, participant, VIDEO, "video", "preliminary", "b.mp4", "video/mp4")).json()
    assert second["replaced"] == 1
    assert storage.removed == [first["file"]["file_path"]]
    listing = (await client.get("/entries/me/files", headers=auth(participant))).json()
    assert [f["file_name"] for f in listing] == ["b.mp4"]

@pytest.mark.asyncio
async def test_blob_cleanup_failure_is_only_a_warning(client, storage, participant):
    await _start(client, participant)
    await _upload(client, participant, VIDEO, "video", "preliminary", "a.mp4", "video/mp4")
    storage.fail_remove = True
    r = await _upload(client, participant, VIDEO, "video", "preliminary", "b.mp4", "video/mp4")
    assert r.status_code == 201
    assert r.json()["warnings"] == ["An old copy of this file could not be removed from storage"]

@pytest.mark.asyncio
async def test_multi_slot_purposes_accumulate(client, participant):
    await _start(client, participant)
    await _upload(client, participant, _png(), "photo", "scene1_image", "one.png", "image/png")
    r = await _upload(client, participant, _png(), "photo", "scene1_image", "two.png", "image/png")
    assert r.json()["replaced"] == 0
    assert len((await client.get("/entries/me/files", headers=auth(participant))).json()) == 2

@pytest.mark.asyncio
async def test_photo_content_is_checked(client, participant):
    await _start(client, participant)
    r = await _upload(client, participant, b"definitely not an image", "photo", "player_photo", "p.png", "image/png")
    assert r.status_code == 400
    assert r.json()["reasons"] == ["The image could not be read"]

    # the declared type is ignored in favour of the real one
    r = await _upload(client, participant, _png(), "photo", "player_photo", "p.jpg", "image/jpeg")
    assert r.status_code == 201, r.text
    assert r.json()["file"]["mime_type"] == "image/png"

@pytest.mark.asyncio
async def test_rejects_bad_type_and_purpose(client, participant):
    await _start(client, participant)
    r = await _upload(client, participant, VIDEO, "video", "preliminary", "v.exe", "application/x-msdownload")
    assert r.status_code == 400
    assert r.json()["reasons"] == ["Unsupported video format: application/x-msdownload"]
    r = await _upload(client, participant, VIDEO, "video", "../etc", "v.mp4", "video/mp4")
    assert r.status_code == 400
    r = await _upload(client, participant, b"", "hologram", "preliminary")
    assert r.json()["reasons"] == ["Unknown file type: hologram"]

@pytest.mark.asyncio
async def test_delete_file_reopens_the_stage(client, storage, participant):
    await _start(client, participant)
    up = (await _upload(client, participant, VIDEO, "video", "preliminary", "v.mp4", "video/mp4")).json()
    r = await client.delete(f"/entries/me/files/{up['file']['id']}", headers=auth(participant))
    assert r.status_code == 200
    assert r.json() == {"success": True, "warnings": []}
    assert storage.removed == [up["file"]["file_path"]]
    dash = (await client.get("/entries/me", headers=auth(participant))).json()
    assert dash["stages"]["preliminary"]["status"] == "in_progress"

@pytest.mark.asyncio
async def test_cannot_delete_someone_elses_file(client, db, participant):
    await _start(client, participant)
    up = (await _upload(client, participant, VIDEO, "video", "preliminary", "v.mp4", "video/mp4")).json()
    other = await make_user(db)
    await _start(client, other)
    r = await client.delete(f"/entries/me/files/{up['file']['id']}", headers=auth(other))
    assert r.status_code == 404

@pytest.mark.asyncio
async def test_upload_after_the_deadline_is_refused(client, db, storage, participant):
    await _start(client, participant)
    await _close_preliminary(db)
    r = await _upload(client, participant, VIDEO, "video", "preliminary", "v.mp4", "video/mp4")
    assert r.status_code == 403
    assert r.json() == {"error": "The deadline for this section has passed"}
    assert storage.objects == {}
    # photos belong to the program stage, which is still open
    r = await _upload(client, participant, _png(), "photo", "player_photo", "p.png", "image/png")
    assert r.status_code == 201, r.text

@pytest.mark.asyncio
async def test_delete_after_the_deadline_is_refused(client, db, storage, participant):
    await _start(client, participant)
    up = (await _upload(client, participant, VIDEO, "video", "preliminary", "v.mp4", "video/mp4")).json()
    await _close_preliminary(db)
    r = await client.delete(f"/entries/me/files/{up['file']['id']}", headers=auth(participant))
    assert r.status_code == 403
    assert storage.removed == []
    listing = (await client.get("/entries/me/files", headers=auth(participant))).json()
    assert [f["id"] for f in listing] == [up["file"]["id"]]
