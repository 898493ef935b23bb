"""Record types passed between the generator, the store and the HTTP layer."""
from dataclasses import dataclass, asdict, field
from typing import Optional, Dict, Any

STATUSES = ("submitted", "reviewed", "resolved")


@dataclass
class ComplaintRecord:
    """A persisted complaint submission."""

    id: str
    complaint_text: str
    transcribed_text: str
    language: str
    category: Optional[str] = None
    status: str = "submitted"
    audio_path: Optional[str] = None
    created_at: Optional[str] = None
    updated_at: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "ComplaintRecord":
        return cls(
            id=data["id"],
            complaint_text=data["complaint_text"],
            transcribed_text=data["transcribed_text"],
            language=data["language"],
            category=data.get("category"),
            status=data.get("status") or "submitted",
            audio_path=data.get("audio_path"),
            created_at=data.get("created_at"),
            updated_at=data.get("updated_at"),
        )


@dataclass
class GenerationResult:
    """Letter produced by the generator for one request.

    ``source`` records which path produced the letter (``ai`` or
    ``template``); it is kept out of ``to_dict`` so callers cannot tell the
    two apart.
    """

    complaint_text: str
    category: str
    description: str
    timestamp: str
    language: str
    source: str = field(default="template", compare=False)

    @property
    def details(self) -> Dict[str, str]:
        return {
            "category": self.category,
            "description": self.description,
            "timestamp": self.timestamp,
            "language": self.language,
        }

    def to_dict(self) -> Dict[str, Any]:
        return {
            "complaint_text": self.complaint_text,
            "category": self.category,
            "details": self.details,
        }
