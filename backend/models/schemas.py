from pydantic import BaseModel
from typing import List, Optional


class LessonFile(BaseModel):
    data: Optional[str] = None
    type: Optional[str] = None


class LessonReq(BaseModel):
    prompt: Optional[str] = None
    files: Optional[List[LessonFile]] = None


class ExplainConceptReq(BaseModel):
    subject: Optional[str] = None
    topic: Optional[str] = None
    subtopic: Optional[str] = None
    context: Optional[str] = None

