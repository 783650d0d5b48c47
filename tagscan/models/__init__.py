"""tagscan models package.

Defines the shared data contracts used across the detection engine:

  - scan.py:     Snippet, LocatedItem, ScanReport, SourceKind
  - document.py: Node / NodeKind tagged union for structured documents

These models are the single source of truth for the engine's ingress and
egress contracts. Collaborators hand in blobs and receive a ScanReport.
"""
