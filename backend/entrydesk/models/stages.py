from __future__ import annotations
import uuid
from datetime import date, datetime
from sqlalchemy.orm import Mapped, mapped_column, declared_attr
from sqlalchemy import String, Text, Integer, Boolean, Date, DateTime, ForeignKey, Uuid, func
from entrydesk.db import Base, utcnow

_BOOKKEEPING = frozenset({"id", "entry_id", "created_at", "updated_at"})


class StageRecordMixin:
    """One row per entry per stage; the unique entry_id guards concurrent first saves."""
    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)

    @declared_attr
    def entry_id(cls) -> Mapped[uuid.UUID]:
        return mapped_column(Uuid, ForeignKey("entries.id", ondelete="CASCADE"), unique=True, index=True, nullable=False)

    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow, server_default=func.now(), nullable=False)
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow, onupdate=utcnow, server_default=func.now(), nullable=False)

    @classmethod
    def data_fields(cls) -> list[str]:
        return [c.key for c in cls.__table__.columns if c.key not in _BOOKKEEPING]

    def values(self) -> dict:
        return {name: getattr(self, name) for name in self.data_fields()}


class MusicMixin:
    work_title: Mapped[str | None] = mapped_column(Text())
    work_title_kana: Mapped[str | None] = mapped_column(Text())
    work_character_story: Mapped[str | None] = mapped_column(Text())
    copyright_permission: Mapped[str | None] = mapped_column(String(16))  # commercial|licensed|original
    music_title: Mapped[str | None] = mapped_column(Text())
    cd_title: Mapped[str | None] = mapped_column(Text())
    artist: Mapped[str | None] = mapped_column(Text())
    record_number: Mapped[str | None] = mapped_column(Text())
    jasrac_code: Mapped[str | None] = mapped_column(String(32))
    music_type: Mapped[str | None] = mapped_column(String(16))  # cd|download|other
    music_data_path: Mapped[str | None] = mapped_column(Text())
    music_usage_method: Mapped[str | None] = mapped_column(Text())


class SoundMixin:
    sound_start_timing: Mapped[str | None] = mapped_column(Text())
    chaser_song_designation: Mapped[str | None] = mapped_column(Text())
    chaser_song: Mapped[str | None] = mapped_column(Text())
    fade_out_start_time: Mapped[str | None] = mapped_column(String(16))
    fade_out_complete_time: Mapped[str | None] = mapped_column(String(16))


class LightingMixin:
    dance_start_timing: Mapped[str | None] = mapped_column(Text())

    scene1_time: Mapped[str | None] = mapped_column(String(16))
    scene1_trigger: Mapped[str | None] = mapped_column(Text())
    scene1_color_type: Mapped[str | None] = mapped_column(String(32))
    scene1_color_other: Mapped[str | None] = mapped_column(Text())
    scene1_image: Mapped[str | None] = mapped_column(Text())
    scene1_image_path: Mapped[str | None] = mapped_column(Text())
    scene1_notes: Mapped[str | None] = mapped_column(Text())

    scene2_time: Mapped[str | None] = mapped_column(String(16))
    scene2_trigger: Mapped[str | None] = mapped_column(Text())
    scene2_color_type: Mapped[str | None] = mapped_column(String(32))
    scene2_color_other: Mapped[str | None] = mapped_column(Text())
    scene2_image: Mapped[str | None] = mapped_column(Text())
    scene2_image_path: Mapped[str | None] = mapped_column(Text())
    scene2_notes: Mapped[str | None] = mapped_column(Text())

    scene3_time: Mapped[str | None] = mapped_column(String(16))
    scene3_trigger: Mapped[str | None] = mapped_column(Text())
    scene3_color_type: Mapped[str | None] = mapped_column(String(32))
    scene3_color_other: Mapped[str | None] = mapped_column(Text())
    scene3_image: Mapped[str | None] = mapped_column(Text())
    scene3_image_path: Mapped[str | None] = mapped_column(Text())
    scene3_notes: Mapped[str | None] = mapped_column(Text())

    scene4_time: Mapped[str | None] = mapped_column(String(16))
    scene4_trigger: Mapped[str | None] = mapped_column(Text())
    scene4_color_type: Mapped[str | None] = mapped_column(String(32))
    scene4_color_other: Mapped[str | None] = mapped_column(Text())
    scene4_image: Mapped[str | None] = mapped_column(Text())
    scene4_image_path: Mapped[str | None] = mapped_column(Text())
    scene4_notes: Mapped[str | None] = mapped_column(Text())

    scene5_time: Mapped[str | None] = mapped_column(String(16))
    scene5_trigger: Mapped[str | None] = mapped_column(Text())
    scene5_color_type: Mapped[str | None] = mapped_column(String(32))
    scene5_color_other: Mapped[str | None] = mapped_column(Text())
    scene5_image: Mapped[str | None] = mapped_column(Text())
    scene5_image_path: Mapped[str | None] = mapped_column(Text())
    scene5_notes: Mapped[str | None] = mapped_column(Text())

    chaser_exit_time: Mapped[str | None] = mapped_column(String(16))
    chaser_exit_trigger: Mapped[str | None] = mapped_column(Text())
    chaser_exit_color_type: Mapped[str | None] = mapped_column(String(32))
    chaser_exit_color_other: Mapped[str | None] = mapped_column(Text())
    chaser_exit_image: Mapped[str | None] = mapped_column(Text())
    chaser_exit_image_path: Mapped[str | None] = mapped_column(Text())
    chaser_exit_notes: Mapped[str | None] = mapped_column(Text())


class BasicInfo(StageRecordMixin, Base):
    __tablename__ = "basic_info"
    dance_style: Mapped[str | None] = mapped_column(String(64))
    category_division: Mapped[str | None] = mapped_column(String(64))
    representative_name: Mapped[str | None] = mapped_column(String(120))
    representative_furigana: Mapped[str | None] = mapped_column(String(120))
    representative_romaji: Mapped[str | None] = mapped_column(String(120))
    representative_birthdate: Mapped[date | None] = mapped_column(Date())
    representative_email: Mapped[str | None] = mapped_column(String(255))
    phone_number: Mapped[str | None] = mapped_column(String(32))
    has_partner: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
    partner_name: Mapped[str | None] = mapped_column(String(120))
    partner_furigana: Mapped[str | None] = mapped_column(String(120))
    partner_romaji: Mapped[str | None] = mapped_column(String(120))
    partner_birthdate: Mapped[date | None] = mapped_column(Date())
    emergency_contact_name_1: Mapped[str | None] = mapped_column(String(120))
    emergency_contact_phone_1: Mapped[str | None] = mapped_column(String(32))
    emergency_contact_name_2: Mapped[str | None] = mapped_column(String(120))
    emergency_contact_phone_2: Mapped[str | None] = mapped_column(String(32))
    guardian_name: Mapped[str | None] = mapped_column(String(120))
    guardian_phone: Mapped[str | None] = mapped_column(String(32))
    guardian_email: Mapped[str | None] = mapped_column(String(255))
    partner_guardian_name: Mapped[str | None] = mapped_column(String(120))
    partner_guardian_phone: Mapped[str | None] = mapped_column(String(32))
    partner_guardian_email: Mapped[str | None] = mapped_column(String(255))
    agreement_checked: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    privacy_policy_checked: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    media_consent_checked: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)


class PreliminaryInfo(StageRecordMixin, Base):
    __tablename__ = "preliminary_info"
    work_title: Mapped[str | None] = mapped_column(Text())
    work_title_kana: Mapped[str | None] = mapped_column(Text())
    work_story: Mapped[str | None] = mapped_column(Text())
    music_rights_cleared: Mapped[str | None] = mapped_column(String(1))
    music_title: Mapped[str | None] = mapped_column(Text())
    cd_title: Mapped[str | None] = mapped_column(Text())
    artist: Mapped[str | None] = mapped_column(Text())
    record_number: Mapped[str | None] = mapped_column(Text())
    jasrac_code: Mapped[str | None] = mapped_column(String(32))
    music_type: Mapped[str | None] = mapped_column(String(16))
    choreographer1_name: Mapped[str | None] = mapped_column(String(120))
    choreographer1_furigana: Mapped[str | None] = mapped_column(String(120))
    choreographer2_name: Mapped[str | None] = mapped_column(String(120))
    choreographer2_furigana: Mapped[str | None] = mapped_column(String(120))


class ProgramInfo(StageRecordMixin, Base):
    __tablename__ = "program_info"
    song_count: Mapped[int | None] = mapped_column(Integer)  # 1|2
    affiliation: Mapped[str | None] = mapped_column(Text())
    player_photo_path: Mapped[str | None] = mapped_column(Text())
    semifinal_story: Mapped[str | None] = mapped_column(Text())
    semifinal_highlight: Mapped[str | None] = mapped_column(Text())
    semifinal_image1_path: Mapped[str | None] = mapped_column(Text())
    semifinal_image2_path: Mapped[str | None] = mapped_column(Text())
    semifinal_image3_path: Mapped[str | None] = mapped_column(Text())
    semifinal_image4_path: Mapped[str | None] = mapped_column(Text())
    final_affiliation: Mapped[str | None] = mapped_column(Text())
    final_player_photo_path: Mapped[str | None] = mapped_column(Text())
    final_story: Mapped[str | None] = mapped_column(Text())
    final_highlight: Mapped[str | None] = mapped_column(Text())
    final_image1_path: Mapped[str | None] = mapped_column(Text())
    final_image2_path: Mapped[str | None] = mapped_column(Text())
    final_image3_path: Mapped[str | None] = mapped_column(Text())
    final_image4_path: Mapped[str | None] = mapped_column(Text())
    notes: Mapped[str | None] = mapped_column(Text())


class SemifinalsInfo(StageRecordMixin, MusicMixin, SoundMixin, LightingMixin, Base):
    __tablename__ = "semifinals_info"
    music_change_from_preliminary: Mapped[bool | None] = mapped_column(Boolean)
    choreographer_change_from_preliminary: Mapped[bool | None] = mapped_column(Boolean)
    choreographer_name: Mapped[str | None] = mapped_column(String(120))
    choreographer_name_kana: Mapped[str | None] = mapped_column(String(120))
    choreographer2_name: Mapped[str | None] = mapped_column(String(120))
    choreographer2_name_kana: Mapped[str | None] = mapped_column(String(120))
    props_usage: Mapped[str | None] = mapped_column(String(8))  # yes|no
    props_details: Mapped[str | None] = mapped_column(Text())
    bank_name: Mapped[str | None] = mapped_column(String(120))
    branch_name: Mapped[str | None] = mapped_column(String(120))
    account_type: Mapped[str | None] = mapped_column(String(32))
    account_number: Mapped[str | None] = mapped_column(String(32))
    account_holder: Mapped[str | None] = mapped_column(String(120))


class FinalsInfo(StageRecordMixin, MusicMixin, SoundMixin, LightingMixin, Base):
    __tablename__ = "finals_info"
    music_change: Mapped[bool | None] = mapped_column(Boolean)
    sound_change_from_semifinals: Mapped[bool | None] = mapped_column(Boolean)
    lighting_change_from_semifinals: Mapped[bool | None] = mapped_column(Boolean)
    choreographer_change: Mapped[bool | None] = mapped_column(Boolean)
    choreographer_name: Mapped[str | None] = mapped_column(String(120))
    choreographer_furigana: Mapped[str | None] = mapped_column(String(120))
    choreographer2_name: Mapped[str | None] = mapped_column(String(120))
    choreographer2_furigana: Mapped[str | None] = mapped_column(String(120))
    props_usage: Mapped[str | None] = mapped_column(String(8))
    props_details: Mapped[str | None] = mapped_column(Text())
    choreographer_attendance: Mapped[str | None] = mapped_column(String(32))
    choreographer_photo_permission: Mapped[str | None] = mapped_column(String(32))
    choreographer_photo_path: Mapped[str | None] = mapped_column(Text())


class SnsInfo(StageRecordMixin, Base):
    __tablename__ = "sns_info"
    practice_video_path: Mapped[str | None] = mapped_column(Text())
    introduction_highlight_path: Mapped[str | None] = mapped_column(Text())
    sns_notes: Mapped[str | None] = mapped_column(Text())


class ApplicationsInfo(StageRecordMixin, Base):
    __tablename__ = "applications_info"
    related_ticket_count: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    related1_relationship: Mapped[str | None] = mapped_column(String(64))
    related1_name: Mapped[str | None] = mapped_column(String(120))
    related1_furigana: Mapped[str | None] = mapped_column(String(120))
    related2_relationship: Mapped[str | None] = mapped_column(String(64))
    related2_name: Mapped[str | None] = mapped_column(String(120))
    related2_furigana: Mapped[str | None] = mapped_column(String(120))
    related3_relationship: Mapped[str | None] = mapped_column(String(64))
    related3_name: Mapped[str | None] = mapped_column(String(120))
    related3_furigana: Mapped[str | None] = mapped_column(String(120))
    related4_relationship: Mapped[str | None] = mapped_column(String(64))
    related4_name: Mapped[str | None] = mapped_column(String(120))
    related4_furigana: Mapped[str | None] = mapped_column(String(120))
    related5_relationship: Mapped[str | None] = mapped_column(String(64))
    related5_name: Mapped[str | None] = mapped_column(String(120))
    related5_furigana: Mapped[str | None] = mapped_column(String(120))
    companion1_name: Mapped[str | None] = mapped_column(String(120))
    companion1_furigana: Mapped[str | None] = mapped_column(String(120))
    companion1_purpose: Mapped[str | None] = mapped_column(Text())
    companion2_name: Mapped[str | None] = mapped_column(String(120))
    companion2_furigana: Mapped[str | None] = mapped_column(String(120))
    companion2_purpose: Mapped[str | None] = mapped_column(Text())
    companion3_name: Mapped[str | None] = mapped_column(String(120))
    companion3_furigana: Mapped[str | None] = mapped_column(String(120))
    companion3_purpose: Mapped[str | None] = mapped_column(Text())
    payment_slip_path: Mapped[str | None] = mapped_column(Text())
    applications_notes: Mapped[str | None] = mapped_column(Text())
    makeup_preferred_stylist: Mapped[str | None] = mapped_column(String(120))
    makeup_name: Mapped[str | None] = mapped_column(String(120))
    makeup_email: Mapped[str | None] = mapped_column(String(255))
    makeup_phone: Mapped[str | None] = mapped_column(String(32))
    makeup_notes: Mapped[str | None] = mapped_column(Text())
