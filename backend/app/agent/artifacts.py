from typing import Literal

from pydantic import BaseModel, Field


class CulturalInterpretation(BaseModel):
    """Artifact produced by the Interpretation Agent."""
    summary: str = Field(description="Two or three sentences on what this tree has meant to people")
    symbolism: list[str] = Field(
        default_factory=list,
        description="Short phrases for what the tree symbolises (e.g., 'endurance', 'hospitality')",
    )
    traditions: list[str] = Field(
        default_factory=list,
        description="Customs, stories or practices connected to the tree",
    )
    reflection_response: str = Field(
        description="A warm response that connects the visitor's reflection to the tree's cultural meaning"
    )

    def to_narration_text(self) -> str:
        """Render the artifact as prose suitable for reading aloud."""
        paragraphs = [self.summary.strip()]
        if self.symbolism:
            paragraphs.append("It is often seen as a symbol of " + _join_phrases(self.symbolism) + ".")
        if self.traditions:
            paragraphs.append("Traditions include " + _join_phrases(self.traditions) + ".")
        paragraphs.append(self.reflection_response.strip())
        return "\n\n".join(p for p in paragraphs if p)


def _join_phrases(items: list[str]) -> str:
    cleaned = [item.strip().rstrip(".") for item in items if item and item.strip()]
    if len(cleaned) <= 1:
        return "".join(cleaned)
    return ", ".join(cleaned[:-1]) + " and " + cleaned[-1]


class InterpretationResult(BaseModel):
    text: str
    status: Literal["generated", "fallback"]
