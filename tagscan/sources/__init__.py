"""Best-effort content collaborators.

Each collector turns a content store into ``(source_identifier, content)``
pairs for the scan aggregator. Unreadable sources yield no pair; they never
influence matching.
"""


class SourceError(Exception):
    """A requested content source could not be opened at all."""
