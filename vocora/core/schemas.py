"""
Vocora Schemas
Pydantic models for service payloads and API request bodies
"""

from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field

FOUND = "found"
NOT_FOUND = "not_found"
ERROR = "error"


class DefinitionEntry(BaseModel):
    """Cached dictionary result for one normalized word"""
    model_config = ConfigDict(frozen=True, populate_by_name=True)

    definition: str
    part_of_speech: str = Field(alias="partOfSpeech")
    status: str = FOUND

    @property
    def is_sentinel(self) -> bool:
        return self.status != FOUND

    def to_dict(self) -> dict:
        return {
            "definition": self.definition,
            "partOfSpeech": self.part_of_speech,
            "status": self.status
        }


NOT_FOUND_ENTRY = DefinitionEntry(
    definition="Definition not found.", partOfSpeech="unknown", status=NOT_FOUND
)
ERROR_ENTRY = DefinitionEntry(
    definition="Error fetching definition.", partOfSpeech="unknown", status=ERROR
)


# Dictionary service payload (only the fields we read)
class DictionarySense(BaseModel):
    definition: str


class DictionaryMeaning(BaseModel):
    part_of_speech: str = Field(alias="partOfSpeech")
    definitions: List[DictionarySense]


class DictionaryResult(BaseModel):
    word: Optional[str] = None
    meanings: List[DictionaryMeaning]


# API request bodies
class StoryRequest(BaseModel):
    words: List[str]


class ImageRequest(BaseModel):
    story: str


class WordRequest(BaseModel):
    word: str


class FocusRequest(BaseModel):
    word: str
    index: int


class AnnotateRequest(BaseModel):
    story: str
    marked: List[str] = Field(default_factory=list)
    known: Optional[List[str]] = None
    focus: Optional[FocusRequest] = None
