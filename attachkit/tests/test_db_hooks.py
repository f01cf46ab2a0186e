from __future__ import annotations

from pathlib import Path

import pytest
from sqlalchemy import Integer, String, create_engine, select, update
from sqlalchemy.orm import Mapped, Session, mapped_column

from attachkit.core.config import AttachmentOptions
from attachkit.db import Base, register_attachment_hooks
from attachkit.features.attachments.declarations import AttachedFile
from attachkit.features.attachments.image_tool import ToolResult
from attachkit.features.attachments.lifecycle import AttachmentRuntime
from attachkit.features.attachments.uploads import InMemoryUpload


class _FakeImageTool:
    def identify(self, data: bytes) -> str:
        return "- PNG 400x300 400x300+0+0 8-bit"

    def convert(self, data: bytes, *, scale_geometry: str, crop_geometry: str | None = None) -> ToolResult:
        return ToolResult(returncode=0, output=f"{scale_geometry} {crop_geometry}".encode())


@register_attachment_hooks
class Profile(Base):
    __tablename__ = "profiles"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    name: Mapped[str] = mapped_column(String(64), nullable=False)
    avatar_file_name: Mapped[str | None] = mapped_column(String(255), nullable=True)
    avatar_content_type: Mapped[str | None] = mapped_column(String(255), nullable=True)

    avatar = AttachedFile(styles={"thumb": "100x100#"})


@pytest.fixture
def session(monkeypatch, tmp_path: Path):
    runtime = AttachmentRuntime.build(AttachmentOptions(app_root=str(tmp_path)), tool=_FakeImageTool())
    monkeypatch.setattr(Profile, "__attachment_runtime__", runtime, raising=False)

    engine = create_engine("sqlite://")
    Base.metadata.create_all(engine)
    with Session(engine, expire_on_commit=False) as db_session:
        yield db_session
    engine.dispose()


def _avatar(tmp_path: Path, profile_id: int, style: str, filename: str = "me.png") -> Path:
    return tmp_path / "public" / "profiles" / str(profile_id) / f"{style}_{filename}"


def test_insert_writes_files_after_row_gets_an_id(session: Session, tmp_path: Path):
    profile = Profile(name="ada")
    profile.avatar = InMemoryUpload("me.png", b"PNGDATA", "image/png")
    session.add(profile)

    session.commit()

    assert profile.id is not None
    assert _avatar(tmp_path, profile.id, "original").read_bytes() == b"PNGDATA"
    assert _avatar(tmp_path, profile.id, "thumb").read_bytes() == b"x100 100x100+16+0"
    assert profile.avatar.status == "clean"

    stored = session.execute(select(Profile.avatar_file_name, Profile.avatar_content_type)).one()
    assert tuple(stored) == ("me.png", "image/png")


def test_update_replaces_previous_files(session: Session, tmp_path: Path):
    profile = Profile(name="ada")
    profile.avatar = InMemoryUpload("old.png", b"OLD", "image/png")
    session.add(profile)
    session.commit()

    profile.avatar = InMemoryUpload("new.png", b"NEW", "image/png")
    session.commit()

    assert not _avatar(tmp_path, profile.id, "original", "old.png").exists()
    assert _avatar(tmp_path, profile.id, "original", "new.png").read_bytes() == b"NEW"
    assert session.execute(select(Profile.avatar_file_name)).scalar_one() == "new.png"


def test_delete_removes_files(session: Session, tmp_path: Path):
    profile = Profile(name="ada")
    profile.avatar = InMemoryUpload("me.png", b"PNGDATA", "image/png")
    session.add(profile)
    session.commit()
    profile_id = profile.id

    session.delete(profile)
    session.commit()

    assert not _avatar(tmp_path, profile_id, "original").exists()
    assert not _avatar(tmp_path, profile_id, "thumb").exists()


def test_register_attachment_hooks_requires_declarations():
    class Plain:
        pass

    with pytest.raises(ValueError, match="declares no attachments"):
        register_attachment_hooks(Plain)


def test_rollback_after_flush_keeps_previous_files(session: Session, tmp_path: Path):
    profile = Profile(name="ada")
    profile.avatar = InMemoryUpload("old.png", b"OLD", "image/png")
    session.add(profile)
    session.commit()

    profile.avatar = InMemoryUpload("new.png", b"NEW", "image/png")
    session.flush()
    assert _avatar(tmp_path, profile.id, "original", "new.png").read_bytes() == b"NEW"
    session.rollback()

    assert session.execute(select(Profile.avatar_file_name)).scalar_one() == "old.png"
    assert _avatar(tmp_path, profile.id, "original", "old.png").read_bytes() == b"OLD"
    assert _avatar(tmp_path, profile.id, "thumb", "old.png").exists()
    assert not _avatar(tmp_path, profile.id, "original", "new.png").exists()
    assert not _avatar(tmp_path, profile.id, "thumb", "new.png").exists()
    assert profile.avatar.status == "clean"
    assert profile.avatar.get() == "old.png"
    assert profile.avatar_file_name == "old.png"


def test_rollback_of_insert_removes_written_files(session: Session, tmp_path: Path):
    profile = Profile(name="ada")
    profile.avatar = InMemoryUpload("me.png", b"PNGDATA", "image/png")
    session.add(profile)
    session.flush()
    profile_id = profile.id
    assert _avatar(tmp_path, profile_id, "original").exists()

    session.rollback()

    assert not _avatar(tmp_path, profile_id, "original").exists()
    assert not _avatar(tmp_path, profile_id, "thumb").exists()
    assert profile.avatar.status == "dirty"


def test_closing_without_commit_removes_written_files(session: Session, tmp_path: Path):
    profile = Profile(name="ada")
    profile.avatar = InMemoryUpload("me.png", b"PNGDATA", "image/png")
    session.add(profile)
    session.flush()
    profile_id = profile.id

    session.close()

    assert not _avatar(tmp_path, profile_id, "original").exists()
    assert not _avatar(tmp_path, profile_id, "thumb").exists()


def test_handle_follows_refreshed_record(session: Session, tmp_path: Path):
    profile = Profile(name="ada")
    profile.avatar = InMemoryUpload("me.png", b"PNGDATA", "image/png")
    session.add(profile)
    session.commit()
    assert profile.avatar.get() == "me.png"

    session.execute(update(Profile).values(avatar_file_name="other.png", avatar_content_type="image/gif"))
    session.refresh(profile)

    assert profile.avatar.get() == "other.png"
    assert profile.avatar.path() == str(_avatar(tmp_path, profile.id, "original", "other.png"))
