from __future__ import annotations
from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql

# revision identifiers
revision = "20261019_0001"
down_revision = None
branch_labels = None
depends_on = None

SCENES = ["scene1", "scene2", "scene3", "scene4", "scene5", "chaser_exit"]
STAGE_TABLES = [
    "basic_info", "preliminary_info", "program_info", "semifinals_info",
    "finals_info", "sns_info", "applications_info",
]


def _stage_base(table: str) -> list:
    return [
        sa.Column("id", postgresql.UUID(as_uuid=True), primary_key=True, nullable=False),
        sa.Column("entry_id", postgresql.UUID(as_uuid=True), sa.ForeignKey("entries.id", ondelete="CASCADE"), nullable=False),
        sa.Column("created_at", sa.TIMESTAMP(timezone=True), server_default=sa.text("now()"), nullable=False),
        sa.Column("updated_at", sa.TIMESTAMP(timezone=True), server_default=sa.text("now()"), nullable=False),
        sa.UniqueConstraint("entry_id", name=f"uq_{table}_entry_id"),
    ]

def _text(*names: str) -> list:
    return [sa.Column(n, sa.Text(), nullable=True) for n in names]

def _flags(*names: str) -> list:
    return [sa.Column(n, sa.Boolean(), nullable=True) for n in names]

def _music() -> list:
    return _text(
        "work_title", "work_title_kana", "work_character_story", "copyright_permission", "music_title",
        "cd_title", "artist", "record_number", "jasrac_code", "music_type", "music_data_path", "music_usage_method",
    )

def _sound() -> list:
    return _text("sound_start_timing", "chaser_song_designation", "chaser_song", "fade_out_start_time", "fade_out_complete_time")

def _lighting() -> list:
    parts = ["time", "trigger", "color_type", "color_other", "image", "image_path", "notes"]
    return _text("dance_start_timing", *[f"{s}_{p}" for s in SCENES for p in parts])


def upgrade() -> None:
    op.create_table(
        "users",
        sa.Column("id", postgresql.UUID(as_uuid=True), primary_key=True, nullable=False),
        sa.Column("email", sa.String(length=255), nullable=False),
        sa.Column("name", sa.String(length=120), nullable=True),
        sa.Column("role", sa.String(length=16), nullable=False, server_default="participant"),
        sa.Column("has_seed", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("created_at", sa.TIMESTAMP(timezone=True), server_default=sa.text("now()"), nullable=False),
        sa.Column("updated_at", sa.TIMESTAMP(timezone=True), server_default=sa.text("now()"), nullable=False),
    )
    op.create_index("ix_users_email", "users", ["email"], unique=True)

    op.create_table(
        "entries",
        sa.Column("id", postgresql.UUID(as_uuid=True), primary_key=True, nullable=False),
        sa.Column("user_id", postgresql.UUID(as_uuid=True), sa.ForeignKey("users.id", ondelete="CASCADE"), nullable=False),
        sa.Column("status", sa.String(length=16), nullable=False, server_default="pending"),
        *[
            sa.Column(f"{stage}_status", sa.String(length=16), nullable=False, server_default="not_started")
            for stage in ["basic_info", "preliminary", "program", "semifinals", "finals", "sns", "applications"]
        ],
        sa.Column("created_at", sa.TIMESTAMP(timezone=True), server_default=sa.text("now()"), nullable=False),
        sa.Column("updated_at", sa.TIMESTAMP(timezone=True), server_default=sa.text("now()"), nullable=False),
        sa.CheckConstraint("status in ('pending','submitted','selected','rejected')", name="ck_entries_status"),
    )
    op.create_index("ix_entries_user_id", "entries", ["user_id"])
    op.create_index("ix_entries_created_at", "entries", ["created_at"])

    op.create_table(
        "entry_files",
        sa.Column("id", postgresql.UUID(as_uuid=True), primary_key=True, nullable=False),
        sa.Column("entry_id", postgresql.UUID(as_uuid=True), sa.ForeignKey("entries.id", ondelete="CASCADE"), nullable=False),
        sa.Column("file_type", sa.String(length=16), nullable=False),
        sa.Column("purpose", sa.String(length=64), nullable=False),
        sa.Column("file_name", sa.String(length=255), nullable=False),
        sa.Column("file_path", sa.Text(), nullable=False),
        sa.Column("file_size", sa.BigInteger(), nullable=False, server_default="0"),
        sa.Column("mime_type", sa.String(length=128), nullable=True),
        sa.Column("uploaded_at", sa.TIMESTAMP(timezone=True), server_default=sa.text("now()"), nullable=False),
        sa.CheckConstraint("file_type in ('music','audio','video','photo')", name="ck_entry_files_type"),
    )
    op.create_index("ix_entry_files_entry_purpose", "entry_files", ["entry_id", "purpose"])

    op.create_table(
        "selections",
        sa.Column("id", postgresql.UUID(as_uuid=True), primary_key=True, nullable=False),
        sa.Column("entry_id", postgresql.UUID(as_uuid=True), sa.ForeignKey("entries.id", ondelete="CASCADE"), nullable=False),
        sa.Column("admin_id", postgresql.UUID(as_uuid=True), sa.ForeignKey("users.id", ondelete="SET NULL"), nullable=True),
        sa.Column("score", sa.Integer(), nullable=True),
        sa.Column("comments", sa.Text(), nullable=True),
        sa.Column("status", sa.String(length=16), nullable=False),
        sa.Column("created_at", sa.TIMESTAMP(timezone=True), server_default=sa.text("now()"), nullable=False),
        sa.CheckConstraint("score is null or (score between 1 and 10)", name="ck_selections_score"),
    )
    op.create_index("ix_selections_entry_id", "selections", ["entry_id"])

    op.create_table(
        "settings",
        sa.Column("key", sa.String(length=64), primary_key=True, nullable=False),
        sa.Column("value", sa.Text(), nullable=True),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("updated_at", sa.TIMESTAMP(timezone=True), server_default=sa.text("now()"), nullable=False),
    )

    op.create_table(
        "basic_info",
        *_stage_base("basic_info"),
        *_text(
            "dance_style", "category_division", "representative_name", "representative_furigana",
            "representative_romaji", "representative_email", "phone_number",
            "partner_name", "partner_furigana", "partner_romaji",
            "emergency_contact_name_1", "emergency_contact_phone_1", "emergency_contact_name_2", "emergency_contact_phone_2",
            "guardian_name", "guardian_phone", "guardian_email",
            "partner_guardian_name", "partner_guardian_phone", "partner_guardian_email",
        ),
        sa.Column("representative_birthdate", sa.Date(), nullable=True),
        sa.Column("partner_birthdate", sa.Date(), nullable=True),
        sa.Column("has_partner", sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column("agreement_checked", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("privacy_policy_checked", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("media_consent_checked", sa.Boolean(), nullable=False, server_default=sa.false()),
    )
    op.create_table(
        "preliminary_info",
        *_stage_base("preliminary_info"),
        *_text(
            "work_title", "work_title_kana", "work_story", "music_title", "cd_title", "artist",
            "record_number", "jasrac_code", "music_type",
            "choreographer1_name", "choreographer1_furigana", "choreographer2_name", "choreographer2_furigana",
        ),
        sa.Column("music_rights_cleared", sa.String(length=1), nullable=True),
    )
    op.create_table(
        "program_info",
        *_stage_base("program_info"),
        sa.Column("song_count", sa.Integer(), nullable=True),
        *_text(
            "affiliation", "player_photo_path", "semifinal_story", "semifinal_highlight",
            *[f"semifinal_image{i}_path" for i in range(1, 5)],
            "final_affiliation", "final_player_photo_path", "final_story", "final_highlight",
            *[f"final_image{i}_path" for i in range(1, 5)],
            "notes",
        ),
    )
    op.create_table(
        "semifinals_info",
        *_stage_base("semifinals_info"),
        *_flags("music_change_from_preliminary", "choreographer_change_from_preliminary"),
        *_music(), *_sound(), *_lighting(),
        *_text(
            "choreographer_name", "choreographer_name_kana", "choreographer2_name", "choreographer2_name_kana",
            "props_usage", "props_details",
            "bank_name", "branch_name", "account_type", "account_number", "account_holder",
        ),
    )
    op.create_table(
        "finals_info",
        *_stage_base("finals_info"),
        *_flags("music_change", "sound_change_from_semifinals", "lighting_change_from_semifinals", "choreographer_change"),
        *_music(), *_sound(), *_lighting(),
        *_text(
            "choreographer_name", "choreographer_furigana", "choreographer2_name", "choreographer2_furigana",
            "props_usage", "props_details",
            "choreographer_attendance", "choreographer_photo_permission", "choreographer_photo_path",
        ),
    )
    op.create_table(
        "sns_info",
        *_stage_base("sns_info"),
        *_text("practice_video_path", "introduction_highlight_path", "sns_notes"),
    )
    op.create_table(
        "applications_info",
        *_stage_base("applications_info"),
        sa.Column("related_ticket_count", sa.Integer(), nullable=False, server_default="0"),
        *_text(
            *[f"related{i}_{p}" for i in range(1, 6) for p in ("relationship", "name", "furigana")],
            *[f"companion{i}_{p}" for i in range(1, 4) for p in ("name", "furigana", "purpose")],
            "payment_slip_path", "applications_notes",
            "makeup_preferred_stylist", "makeup_name", "makeup_email", "makeup_phone", "makeup_notes",
        ),
    )

def downgrade() -> None:
    for table in reversed(STAGE_TABLES):
        op.drop_table(table)
    op.drop_table("settings")
    op.drop_index("ix_selections_entry_id", table_name="selections")
    op.drop_table("selections")
    op.drop_index("ix_entry_files_entry_purpose", table_name="entry_files")
    op.drop_table("entry_files")
    op.drop_index("ix_entries_created_at", table_name="entries")
    op.drop_index("ix_entries_user_id", table_name="entries")
    op.drop_table("entries")
    op.drop_index("ix_users_email", table_name="users")
    op.drop_table("users")
