"""Prompt templates for outline and detail generation.

Templates use ``{{$name}}`` placeholders filled by plain substitution.
No runtime logic beyond render().
"""

import re

_PLACEHOLDER = re.compile(r"\{\{\$(\w+)\}\}")

# Tag wrapping the outline JSON in the model's answer.
OUTLINE_TAG: str = "documentation_structure"

CATALOGUE_PROMPT: str = """
You are a technical writer planning the documentation of a software repository.

The repository is located at: {{$repository_location}}

Its files (hidden and ignored entries removed):

{{$code_files}}

Propose a documentation outline for this repository. Group related topics
into sections; each section may contain subsections, but subsections must
not contain further subsections.

Return the outline as JSON inside <documentation_structure></documentation_structure>
tags, using exactly this shape:

{
  "items": [
    {
      "title": "kebab-case-identifier",
      "name": "Human Readable Section Name",
      "prompt": "Instructions for writing this section",
      "dependent_file": ["relative/path/to/relevant/file"],
      "children": [
        {
          "title": "kebab-case-identifier",
          "name": "Human Readable Subsection Name",
          "prompt": "Instructions for writing this subsection",
          "dependent_file": ["relative/path"],
          "children": []
        }
      ]
    }
  ]
}
"""

DETAIL_PROMPT: str = """
You are a technical writer documenting one section of a software repository.

The repository is located at: {{$repository_location}}

Section to write: {{$title}}

Instructions for this section:
{{$prompt}}

Repository files:

{{$repository_files}}

Full documentation outline, for cross-references to other sections:

{{$catalogue}}

Write the section in Markdown. Base every statement on the repository
contents and reference source files by their relative path.
"""


def render(template: str, **values: str) -> str:
    """Substitute ``{{$key}}`` placeholders in one pass; unknown keys are left as-is."""
    return _PLACEHOLDER.sub(lambda m: values.get(m.group(1), m.group(0)), template)
