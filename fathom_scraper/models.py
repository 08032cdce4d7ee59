"""Data models for scraped Fathom meetings."""

from typing import Any, Dict

from pydantic import BaseModel, Field, model_validator

from .exceptions import InvariantViolation
from .validation import MIN_SUMMARY_LENGTH, MIN_TRANSCRIPT_LENGTH


class MeetingMetadata(BaseModel):
    """What the meeting list tile tells us about a meeting."""
    title: str = "Untitled"
    date: str = ""
    duration: str = ""
    url: str = ""
    thumbnail_url: str = ""
    section: str = ""  # e.g. "Yesterday", "Last Week"
    checkmarks: int = Field(default=0, ge=0)


class TranscriptRecord(BaseModel):
    """Summary and transcript captured for one meeting.

    Construction fails with InvariantViolation unless the summary and the
    transcript differ and both are longer than their minimum lengths.
    """
    meeting_title: str
    transcript: str
    summary: str
    metadata: MeetingMetadata

    @model_validator(mode="after")
    def check_content(self) -> "TranscriptRecord":
        if self.summary == self.transcript:
            raise InvariantViolation("Summary and transcript are identical",
                                     {"length": len(self.summary)})
        if len(self.summary) <= MIN_SUMMARY_LENGTH:
            raise InvariantViolation(f"Summary too short ({len(self.summary)} characters)",
                                     {"minimum": MIN_SUMMARY_LENGTH})
        if len(self.transcript) <= MIN_TRANSCRIPT_LENGTH:
            raise InvariantViolation(f"Transcript too short ({len(self.transcript)} characters)",
                                     {"minimum": MIN_TRANSCRIPT_LENGTH})
        return self

    def to_row(self) -> Dict[str, Any]:
        """Flatten into a row for the meetings table."""
        return {
            "title": self.metadata.title,
            "date": self.metadata.date,
            "duration": self.metadata.duration,
            "url": self.metadata.url,
            "thumbnail_url": self.metadata.thumbnail_url,
            "summary": self.summary,
            "transcript": self.transcript,
        }


def assemble_record(summary: str, transcript: str, metadata: MeetingMetadata) -> TranscriptRecord:
    """Build a record, refusing content that can't be a real summary/transcript pair."""
    return TranscriptRecord(
        meeting_title=metadata.title,
        transcript=transcript or "",
        summary=summary or "",
        metadata=metadata,
    )
