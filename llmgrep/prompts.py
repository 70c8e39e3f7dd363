SYSTEM_PROMPT = """\
You are a highly accurate semantic search function. You judge how relevant a file \
is to a search query by meaning, not by exact keyword matches. Consider related \
concepts, implications and domain-specific terminology.

Always answer in exactly this format and nothing else:
Score: <integer from 0 (irrelevant) to 100 (highly relevant)>
Reason: <one short sentence explaining the relationship>"""

FILENAME_PROMPT = """\
Estimate how likely the file below contains content matching the search query, \
judging ONLY from its path and name.

Consider:
- naming conventions and semantics
- the file extension and its typical content
- common code and documentation patterns
- word matches and related concepts

Path: {path}
Query: {query}

Answer with "Score:" and "Reason:" lines."""

CONTENT_PROMPT = """\
Rate how relevant this text is to the search query.

Filename: {path}{part}
Text:
<<<
{content}
>>>

Query: {query}

Answer with "Score:" and "Reason:" lines. If the text is unrelated, give a low score."""


def filename_prompt(path: str, query: str) -> str:
    return FILENAME_PROMPT.format(path=path, query=query)


def content_prompt(path: str, content: str, query: str, index: int = 0, total: int = 1) -> str:
    part = f" (part {index + 1} of {total})" if total > 1 else ""
    return CONTENT_PROMPT.format(path=path, part=part, content=content, query=query)
