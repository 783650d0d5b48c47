"""Shared constants for tagscan.

All size limits and numeric caps used across modules are defined here.
No magic numbers in other modules; import from here.
"""

# ─── Snippet Extraction ──────────────────────────────────────────────────────

# Characters kept on each side of a match when building Snippet.context.
CONTEXT_WINDOW_CHARS: int = 100

# Hard truncation cap applied to every blob before matching.
# Blobs longer than this are truncated by SnippetExtractor before any regex runs.
MAX_INPUT_CHARS: int = 1_048_576  # 1 MiB of text

# Per-pattern matching budget for one blob (seconds).
# A pattern that exceeds it contributes no matches for that blob.
MATCH_BUDGET_S: float = 0.250  # 250ms

# ─── Structured Documents ────────────────────────────────────────────────────

# Maximum container nesting followed by DocumentWalker.
# Deeper containers are skipped silently; siblings are unaffected.
MAX_DOCUMENT_DEPTH: int = 64

# Maximum container nesting kept when a document is decoded into a Node tree.
# Containers nested deeper are replaced by a null node, so the decoder and the
# serializer never recurse past this bound.
MAX_DOCUMENT_NESTING: int = 256

# ─── Collaborator Limits ─────────────────────────────────────────────────────

# Maximum number of content records pulled from a site export per scan.
MAX_CONTENT_RECORDS: int = 50

# Maximum number of page-builder rows pulled from a site export per scan.
MAX_PAGE_BUILDER_ROWS: int = 30
