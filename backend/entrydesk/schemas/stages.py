from __future__ import annotations
from datetime import date
from typing import Literal
from pydantic import BaseModel, ConfigDict, Field
from entrydesk.services.stages import Stage

CopyrightPermission = Literal["commercial", "licensed", "original"]
# A: commercial recording, B: licence obtained, C: original composition
RightsStatus = Literal["A", "B", "C"]
MusicType = Literal["cd", "download", "other"]
YesNo = Literal["yes", "no"]
ChaserDesignation = Literal["included", "required", "not_required"]
# finals stores the human-readable wording
FinalsChaserDesignation = Literal[
    "Included in performance music", "Separate chaser song required", "No chaser song",
]


class StagePayload(BaseModel):
    """Partial update of one stage form. Only fields the client sends are written."""
    model_config = ConfigDict(extra="forbid")

    def changes(self) -> dict:
        return self.model_dump(exclude_unset=True)


class MusicFields(StagePayload):
    work_title: str | None = None
    work_title_kana: str | None = None
    work_character_story: str | None = None
    copyright_permission: CopyrightPermission | None = None
    music_title: str | None = None
    cd_title: str | None = None
    artist: str | None = None
    record_number: str | None = None
    jasrac_code: str | None = None
    music_type: MusicType | None = None
    music_data_path: str | None = None
    music_usage_method: str | None = None


class SoundFields(StagePayload):
    sound_start_timing: str | None = None
    chaser_song: str | None = None
    fade_out_start_time: str | None = None
    fade_out_complete_time: str | None = None


class LightingFields(StagePayload):
    dance_start_timing: str | None = None
    scene1_time: str | None = None
    scene1_trigger: str | None = None
    scene1_color_type: str | None = None
    scene1_color_other: str | None = None
    scene1_image: str | None = None
    scene1_image_path: str | None = None
    scene1_notes: str | None = None
    scene2_time: str | None = None
    scene2_trigger: str | None = None
    scene2_color_type: str | None = None
    scene2_color_other: str | None = None
    scene2_image: str | None = None
    scene2_image_path: str | None = None
    scene2_notes: str | None = None
    scene3_time: str | None = None
    scene3_trigger: str | None = None
    scene3_color_type: str | None = None
    scene3_color_other: str | None = None
    scene3_image: str | None = None
    scene3_image_path: str | None = None
    scene3_notes: str | None = None
    scene4_time: str | None = None
    scene4_trigger: str | None = None
    scene4_color_type: str | None = None
    scene4_color_other: str | None = None
    scene4_image: str | None = None
    scene4_image_path: str | None = None
    scene4_notes: str | None = None
    scene5_time: str | None = None
    scene5_trigger: str | None = None
    scene5_color_type: str | None = None
    scene5_color_other: str | None = None
    scene5_image: str | None = None
    scene5_image_path: str | None = None
    scene5_notes: str | None = None
    chaser_exit_time: str | None = None
    chaser_exit_trigger: str | None = None
    chaser_exit_color_type: str | None = None
    chaser_exit_color_other: str | None = None
    chaser_exit_image: str | None = None
    chaser_exit_image_path: str | None = None
    chaser_exit_notes: str | None = None


class BasicInfoIn(StagePayload):
    dance_style: str | None = None
    category_division: str | None = None
    representative_name: str | None = None
    representative_furigana: str | None = None
    representative_romaji: str | None = None
    representative_birthdate: date | None = None
    representative_email: str | None = None
    phone_number: str | None = None
    has_partner: bool = True
    partner_name: str | None = None
    partner_furigana: str | None = None
    partner_romaji: str | None = None
    partner_birthdate: date | None = None
    emergency_contact_name_1: str | None = None
    emergency_contact_phone_1: str | None = None
    emergency_contact_name_2: str | None = None
    emergency_contact_phone_2: str | None = None
    guardian_name: str | None = None
    guardian_phone: str | None = None
    guardian_email: str | None = None
    partner_guardian_name: str | None = None
    partner_guardian_phone: str | None = None
    partner_guardian_email: str | None = None
    agreement_checked: bool = False
    privacy_policy_checked: bool = False
    media_consent_checked: bool = False


class PreliminaryIn(StagePayload):
    work_title: str | None = None
    work_title_kana: str | None = None
    work_story: str | None = None
    music_rights_cleared: RightsStatus | None = None
    music_title: str | None = None
    cd_title: str | None = None
    artist: str | None = None
    record_number: str | None = None
    jasrac_code: str | None = None
    music_type: MusicType | None = None
    choreographer1_name: str | None = None
    choreographer1_furigana: str | None = None
    choreographer2_name: str | None = None
    choreographer2_furigana: str | None = None


class ProgramIn(StagePayload):
    song_count: Literal[1, 2] | None = None
    affiliation: str | None = None
    player_photo_path: str | None = None
    semifinal_story: str | None = None
    semifinal_highlight: str | None = None
    semifinal_image1_path: str | None = None
    semifinal_image2_path: str | None = None
    semifinal_image3_path: str | None = None
    semifinal_image4_path: str | None = None
    final_affiliation: str | None = None
    final_player_photo_path: str | None = None
    final_story: str | None = None
    final_highlight: str | None = None
    final_image1_path: str | None = None
    final_image2_path: str | None = None
    final_image3_path: str | None = None
    final_image4_path: str | None = None
    notes: str | None = None


class SemifinalsIn(MusicFields, SoundFields, LightingFields):
    music_change_from_preliminary: bool | None = None
    chaser_song_designation: ChaserDesignation | None = None
    choreographer_change_from_preliminary: bool | None = None
    choreographer_name: str | None = None
    choreographer_name_kana: str | None = None
    choreographer2_name: str | None = None
    choreographer2_name_kana: str | None = None
    props_usage: YesNo | None = None
    props_details: str | None = None
    bank_name: str | None = None
    branch_name: str | None = None
    account_type: str | None = None
    account_number: str | None = None
    account_holder: str | None = None


class FinalsIn(MusicFields, SoundFields, LightingFields):
    music_change: bool | None = None
    sound_change_from_semifinals: bool | None = None
    lighting_change_from_semifinals: bool | None = None
    choreographer_change: bool | None = None
    chaser_song_designation: FinalsChaserDesignation | None = None
    choreographer_name: str | None = None
    choreographer_furigana: str | None = None
    choreographer2_name: str | None = None
    choreographer2_furigana: str | None = None
    props_usage: YesNo | None = None
    props_details: str | None = None
    choreographer_attendance: str | None = None
    choreographer_photo_permission: str | None = None
    choreographer_photo_path: str | None = None


class SnsIn(StagePayload):
    practice_video_path: str | None = None
    introduction_highlight_path: str | None = None
    sns_notes: str | None = None


class ApplicationsIn(StagePayload):
    related_ticket_count: int = Field(default=0, ge=0, le=5)
    related1_relationship: str | None = None
    related1_name: str | None = None
    related1_furigana: str | None = None
    related2_relationship: str | None = None
    related2_name: str | None = None
    related2_furigana: str | None = None
    related3_relationship: str | None = None
    related3_name: str | None = None
    related3_furigana: str | None = None
    related4_relationship: str | None = None
    related4_name: str | None = None
    related4_furigana: str | None = None
    related5_relationship: str | None = None
    related5_name: str | None = None
    related5_furigana: str | None = None
    companion1_name: str | None = None
    companion1_furigana: str | None = None
    companion1_purpose: str | None = None
    companion2_name: str | None = None
    companion2_furigana: str | None = None
    companion2_purpose: str | None = None
    companion3_name: str | None = None
    companion3_furigana: str | None = None
    companion3_purpose: str | None = None
    payment_slip_path: str | None = None
    applications_notes: str | None = None
    makeup_preferred_stylist: str | None = None
    makeup_name: str | None = None
    makeup_email: str | None = None
    makeup_phone: str | None = None
    makeup_notes: str | None = None


STAGE_PAYLOADS: dict[Stage, type[StagePayload]] = {
    Stage.BASIC_INFO: BasicInfoIn,
    Stage.PRELIMINARY: PreliminaryIn,
    Stage.PROGRAM: ProgramIn,
    Stage.SEMIFINALS: SemifinalsIn,
    Stage.FINALS: FinalsIn,
    Stage.SNS: SnsIn,
    Stage.APPLICATIONS: ApplicationsIn,
}
