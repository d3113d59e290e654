"""Outline schemas: the model-proposed documentation structure before persistence.

Wire shape, as requested from the model::

    {"items": [{"title": "...", "name": "...", "prompt": "...",
                "dependent_file": ["a.py"], "children": [...]}]}
"""

from typing import List

from pydantic import BaseModel, Field, field_validator


class OutlineNode(BaseModel):
    """One proposed documentation section."""
    title: str
    name: str
    prompt: str = ""
    dependent_file: List[str] = Field(default_factory=list)
    children: List["OutlineNode"] = Field(default_factory=list)

    @field_validator("title", "name")
    @classmethod
    def strip_required_text(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("must not be blank")
        return v

    @field_validator("prompt", "dependent_file", "children", mode="before")
    @classmethod
    def null_as_empty(cls, v, info):
        if v is None:
            return "" if info.field_name == "prompt" else []
        return v

    @field_validator("dependent_file")
    @classmethod
    def dedupe_dependent_files(cls, v: List[str]) -> List[str]:
        """Keep first occurrence order; drop blanks and repeats."""
        seen: dict[str, None] = {}
        for item in v:
            item = item.strip()
            if item:
                seen.setdefault(item, None)
        return list(seen)


class Outline(BaseModel):
    """Ordered sequence of top-level outline nodes."""
    items: List[OutlineNode] = Field(default_factory=list)

    @property
    def child_count(self) -> int:
        return sum(len(item.children) for item in self.items)


OutlineNode.model_rebuild()
